from crud.crud import reserve

TTL = 1800


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_and_get_events(client, event):
    listing = client.get("/events")
    assert listing.status_code == 200
    assert [e["id"] for e in listing.json()] == [event.id]

    detail = client.get(f"/events/{event.id}")
    assert detail.status_code == 200
    assert detail.json()["place"] == "Teatro Principal"


def test_get_unknown_event(client):
    response = client.get("/events/missing")
    assert response.status_code == 404


def test_create_event_requires_staff(client):
    response = client.post("/events", json={"name": "Nuevo"})
    assert response.status_code == 401


def test_create_event(staff_client):
    response = staff_client.post(
        "/events",
        json={"name": "Nuevo", "place": "Auditorio", "starts_at": "2026-12-01T20:00:00"},
    )
    assert response.status_code == 201
    assert response.json()["name"] == "Nuevo"
    assert staff_client.get(f"/events/{response.json()['id']}").status_code == 200


def test_sold_seats(client, db, event):
    reserve(db, event.id, ["A-1", "B-3"], "buyer@example.com", TTL)

    response = client.get(f"/events/{event.id}/sold-seats")

    assert response.status_code == 200
    assert response.json() == {"sold_seats": ["A-1", "B-3"]}


def test_seat_map(client, db, event):
    reserve(db, event.id, ["C-2"], "buyer@example.com", TTL)

    response = client.get(f"/events/{event.id}/seats")

    assert response.status_code == 200
    seats = {seat["seat_id"]: seat for seat in response.json()}
    assert len(seats) == 146
    assert seats["C-2"]["status"] == "reserved"
    assert seats["C-2"]["category"] == "Preferente"
    assert seats["A-1"] == {
        "seat_id": "A-1",
        "row": "A",
        "col": 1,
        "category": "VIP",
        "price": 38000,
        "status": "available",
    }


def test_seat_map_unknown_event(client):
    response = client.get("/events/missing/seats")
    assert response.status_code == 404
