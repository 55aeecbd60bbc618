from db.database import Base, engine
from models import models  # noqa: F401  registers the tables on Base.metadata


def create_tables(bind=engine):
    Base.metadata.create_all(bind=bind)
