import pytest

from crud.crud import attach_session, mark_paid, release_order, reserve
from models.models import Order, Ticket

TTL = 1800


@pytest.fixture
def pending_order(db, event):
    order = reserve(db, event.id, ["A-1", "B-3"], "buyer@example.com", TTL)
    return attach_session(db, order, "cs_test_123")


@pytest.fixture
def paid_order(db, pending_order):
    order, _ = mark_paid(db, "cs_test_123")
    return order


def test_create_tickets_for_paid_order(client, paid_order, payment_gate, delivery):
    response = client.post("/tickets/create", json={"session_ref": "cs_test_123"})

    assert response.status_code == 200
    tokens = response.json()["tokens"]
    assert len(tokens) == 2
    assert payment_gate.retrieve_status.call_count == 0
    delivery.deliver.assert_awaited_once()

    for token, seat_id in zip(tokens, ["A-1", "B-3"]):
        lookup = client.get(f"/tickets/{token}")
        assert lookup.status_code == 200
        assert lookup.json()["valid"] is True
        assert lookup.json()["seat_id"] == seat_id
        assert lookup.json()["event"]["name"] == "Concierto de Gala"


def test_create_tickets_is_idempotent(client, db, paid_order, delivery):
    first = client.post("/tickets/create", json={"session_ref": "cs_test_123"})
    second = client.post("/tickets/create", json={"session_ref": "cs_test_123"})

    assert first.json()["tokens"] == second.json()["tokens"]
    assert db.query(Ticket).count() == 2
    assert delivery.deliver.await_count == 1


def test_create_tickets_rechecks_unpaid_order_with_stripe(client, db, pending_order, payment_gate):
    payment_gate.retrieve_status.return_value = "paid"

    response = client.post("/tickets/create", json={"session_ref": "cs_test_123"})

    assert response.status_code == 200
    assert len(response.json()["tokens"]) == 2
    payment_gate.retrieve_status.assert_called_once_with("cs_test_123")
    db.refresh(pending_order)
    assert pending_order.paid is True


def test_create_tickets_refuses_unpaid_session(client, db, pending_order, payment_gate, delivery):
    payment_gate.retrieve_status.return_value = "unpaid"

    response = client.post("/tickets/create", json={"session_ref": "cs_test_123"})

    assert response.status_code == 409
    assert db.query(Ticket).count() == 0
    assert delivery.deliver.await_count == 0


def test_create_tickets_for_released_order_returns_409(client, db, pending_order, payment_gate, delivery):
    release_order(db, pending_order)
    payment_gate.retrieve_status.return_value = "paid"

    response = client.post("/tickets/create", json={"session_ref": "cs_test_123"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Order was released before its payment was confirmed"
    assert db.query(Ticket).count() == 0
    assert delivery.deliver.await_count == 0


def test_create_tickets_retries_failed_delivery(client, db, paid_order, delivery):
    delivery.deliver.return_value = False
    first = client.post("/tickets/create", json={"session_ref": "cs_test_123"})
    db.refresh(paid_order)
    assert paid_order.delivered_at is None

    delivery.deliver.return_value = True
    second = client.post("/tickets/create", json={"session_ref": "cs_test_123"})
    third = client.post("/tickets/create", json={"session_ref": "cs_test_123"})

    assert first.json()["tokens"] == second.json()["tokens"] == third.json()["tokens"]
    assert delivery.deliver.await_count == 2
    db.refresh(paid_order)
    assert paid_order.delivered_at is not None


def test_create_tickets_unknown_session(client):
    response = client.post("/tickets/create", json={"session_ref": "cs_missing"})

    assert response.status_code == 404


def test_lookup_unknown_token(client):
    response = client.get("/tickets/zzz")

    assert response.status_code == 404
    assert response.json()["valid"] is False
    assert response.json()["reason"]


def test_checkin_grants_once(client, paid_order):
    token = client.post("/tickets/create", json={"session_ref": "cs_test_123"}).json()["tokens"][0]

    first = client.post("/tickets/checkin", json={"token": token})
    assert first.status_code == 200
    assert first.json() == {"granted": True, "seat_id": "A-1", "token": token}

    second = client.post("/tickets/checkin", json={"token": token})
    assert second.status_code == 409
    assert second.json()["ticket"]["seat_id"] == "A-1"
    assert second.json()["ticket"]["used"] is True

    lookup = client.get(f"/tickets/{token}")
    assert lookup.json()["valid"] is False


def test_checkin_unknown_token(client):
    response = client.post("/tickets/checkin", json={"token": "zzz"})

    assert response.status_code == 404


def test_checkin_without_token(client):
    response = client.post("/tickets/checkin", json={})

    assert response.status_code == 400


def test_manual_create_requires_staff(client, event):
    response = client.post("/tickets/manual-create", json={"event_id": event.id, "seats": ["H-1"]})

    assert response.status_code == 401


def test_manual_create_with_basic_auth(client, event):
    response = client.post(
        "/tickets/manual-create",
        json={"event_id": event.id, "seats": ["H-1"], "buyer": "Taquilla"},
        auth=("staff", "secret"),
    )

    assert response.status_code == 200
    assert len(response.json()["tokens"]) == 1


def test_manual_create_with_wrong_password(client, event):
    response = client.post(
        "/tickets/manual-create",
        json={"event_id": event.id, "seats": ["H-1"]},
        auth=("staff", "wrong"),
    )

    assert response.status_code == 401


def test_manual_create_issues_tickets_and_emails(staff_client, db, event, delivery):
    response = staff_client.post(
        "/tickets/manual-create",
        json={"event_id": event.id, "seats": ["H-1", "H-2"], "buyer": "Luis", "email": "luis@example.com"},
    )

    assert response.status_code == 200
    assert len(response.json()["tokens"]) == 2
    order = db.query(Order).one()
    assert order.source == "manual"
    assert order.paid is True
    delivery.deliver.assert_awaited_once()
    assert order.delivered_at is not None


def test_manual_create_without_email_skips_delivery(staff_client, event, delivery):
    response = staff_client.post(
        "/tickets/manual-create",
        json={"event_id": event.id, "seats": ["H-3"], "buyer": "Luis"},
    )

    assert response.status_code == 200
    assert delivery.deliver.await_count == 0


def test_manual_create_for_reserved_seat(staff_client, pending_order, event):
    response = staff_client.post(
        "/tickets/manual-create",
        json={"event_id": event.id, "seats": ["A-1"], "buyer": "Luis"},
    )

    assert response.status_code == 409


def test_manual_create_with_invalid_email(staff_client, db, event, delivery):
    response = staff_client.post(
        "/tickets/manual-create",
        json={"event_id": event.id, "seats": ["H-4"], "buyer": "Luis", "email": "luis@"},
    )

    assert response.status_code == 400
    assert db.query(Order).count() == 0
    assert delivery.deliver.await_count == 0
