import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    domain: str
    stripe_api_key: str | None
    stripe_webhook_secret: str | None
    currency: str
    expire_time: int  # in seconds
    rabbitmq_url: str | None
    staff_username: str | None
    staff_password: str | None
    cors_origins: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """
    Build the settings from the environment (and .env, if present).

    :return: Settings object, cached for the lifetime of the process.
    """
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./tickets.db"),
        domain=os.getenv("DOMAIN", "http://localhost:3000").rstrip("/"),
        stripe_api_key=os.getenv("STRIPE_API_KEY"),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
        currency=os.getenv("CURRENCY", "mxn"),
        expire_time=int(os.getenv("EXPIRE_TIME", "1800")),
        rabbitmq_url=os.getenv("RABBITMQ_URL"),
        staff_username=os.getenv("STAFF_USERNAME"),
        staff_password=os.getenv("STAFF_PASSWORD"),
        cors_origins=tuple(
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ),
    )
