"""Shared fixtures: an in-memory SQLite ledger and a TestClient wired to it."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth.auth import get_current_staff
from config.config import Settings, get_settings
from crud import crud
from db.create_database import create_tables
from db.database import get_db
from main import app
from services.delivery import TicketDelivery, get_delivery
from services.payment_gate import (CheckoutSession, StripePaymentGate,
                                   get_payment_gate)

EXPIRE_TIME = 1800

test_settings = Settings(
    database_url="sqlite://",
    domain="http://testserver",
    stripe_api_key="sk_test_123",
    stripe_webhook_secret="whsec_123",
    currency="mxn",
    expire_time=EXPIRE_TIME,
    rabbitmq_url=None,
    staff_username="staff",
    staff_password="secret",
    cors_origins=("http://testserver",),
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def event(db):
    return crud.create_event(db, name="Concierto de Gala", place="Teatro Principal")


@pytest.fixture
def payment_gate():
    gate = MagicMock(spec=StripePaymentGate)
    gate.create_session.return_value = CheckoutSession(
        session_ref="cs_test_123",
        redirect_url="https://checkout.stripe.com/c/pay/cs_test_123",
    )
    return gate


@pytest.fixture
def delivery():
    delivery = MagicMock(spec=TicketDelivery)
    delivery.deliver = AsyncMock(return_value=True)
    return delivery


@pytest.fixture
def client(session_factory, payment_gate, delivery):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_payment_gate] = lambda: payment_gate
    app.dependency_overrides[get_delivery] = lambda: delivery
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def staff_client(client):
    app.dependency_overrides[get_current_staff] = lambda: "staff"
    return client
