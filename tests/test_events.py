from storefront.models import Booking, Event, EventSeat
from tests.conftest import auth_headers_for


def test_list_defaults_to_active_events(client, make_event):
    make_event("Rock Fest")
    make_event("Old Show", status="cancelled")

    response = client.get("/api/v1/events/")

    assert response.status_code == 200
    titles = [event["title"] for event in response.json()["events"]]
    assert titles == ["Rock Fest"]


def test_list_all_statuses(client, make_event):
    make_event("Rock Fest")
    make_event("Old Show", status="cancelled")

    response = client.get("/api/v1/events/", params={"status": "all"})

    assert response.json()["total"] == 2


def test_list_is_ordered_by_start_date_and_paginated(client, make_event):
    make_event("Third", days_ahead=30)
    make_event("First", days_ahead=10)
    make_event("Second", days_ahead=20)

    response = client.get("/api/v1/events/", params={"limit": 2, "offset": 2})

    data = response.json()
    assert [event["title"] for event in data["events"]] == ["Third"]
    assert data["total"] == 3
    assert data["page"] == 2
    assert data["total_pages"] == 2
    assert data["limit"] == 2


def test_search_matches_artist(client, make_event):
    make_event("Noche Criolla", artist="Eva Ayllón")
    make_event("Rock Fest", artist="Libido")

    response = client.get("/api/v1/events/", params={"search": "libido"})

    assert [event["title"] for event in response.json()["events"]] == ["Rock Fest"]


def test_filter_by_category_and_city(client, make_event, make_venue):
    cusco = make_venue("Coliseo Cerrado", city="Cusco")
    make_event("Teatro Lima", category="theater")
    make_event("Teatro Cusco", category="theater", venue=cusco)
    make_event("Concierto Cusco", category="concert", venue=cusco)

    response = client.get("/api/v1/events/", params={"category": "theater", "city": "Cusco"})

    assert [event["title"] for event in response.json()["events"]] == ["Teatro Cusco"]


def test_get_event_detail_counts_active_bookings(client, make_event, make_booking, customer):
    event = make_event(seats=2)
    make_booking(customer, event=event, status="confirmed")
    make_booking(customer, event=event, status="cancelled")

    response = client.get(f"/api/v1/events/{event.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["bookings_count"] == 1
    assert len(body["event"]["event_seats"]) == 2
    assert body["event"]["venue"]["city"] == "Lima"


def test_get_unknown_event(client, db_session):
    assert client.get("/api/v1/events/missing").status_code == 404


def test_admin_creates_event_with_seat_layout(client, admin_headers, make_venue, db_session):
    venue = make_venue()

    response = client.post("/api/v1/events/", headers=admin_headers, json={
        "title": "Sinfonía de Verano",
        "venue_id": venue.id,
        "category": "concert",
        "start_date": "2026-12-01T20:00:00",
        "price_from": "120.00",
        "seat_layout": [
            {"section": "VIP", "rows": 2, "seats_per_row": 3, "price": "250.00", "category": "vip"}
        ]
    })

    assert response.status_code == 201
    event_id = response.json()["event"]["id"]
    assert response.json()["event"]["status"] == "active"

    seats = client.get(f"/api/v1/events/{event_id}/seats").json()
    assert len(seats["seats"]) == 6
    assert list(seats["seats_by_section"]) == ["VIP"]
    assert {seat["row"] for seat in seats["seats"]} == {"A", "B"}


def test_customer_cannot_create_event(client, customer_headers, make_venue):
    venue = make_venue()

    response = client.post("/api/v1/events/", headers=customer_headers, json={
        "title": "Unauthorized",
        "venue_id": venue.id,
        "category": "concert",
        "start_date": "2026-12-01T20:00:00",
        "price_from": "10.00"
    })

    assert response.status_code == 403


def test_create_event_with_unknown_venue(client, admin_headers):
    response = client.post("/api/v1/events/", headers=admin_headers, json={
        "title": "Nowhere",
        "venue_id": "no-such-venue",
        "category": "concert",
        "start_date": "2026-12-01T20:00:00",
        "price_from": "10.00"
    })

    assert response.status_code == 400


def test_update_event(client, admin_headers, make_event):
    event = make_event()

    response = client.put(f"/api/v1/events/{event.id}", headers=admin_headers, json={"title": "Rock Fest 2026"})

    assert response.status_code == 200
    assert response.json()["event"]["title"] == "Rock Fest 2026"


def test_patch_status_allow_list(client, admin_headers, make_event):
    event = make_event()

    bad = client.patch(f"/api/v1/events/{event.id}", headers=admin_headers, json={"status": "postponed"})
    assert bad.status_code == 400

    good = client.patch(f"/api/v1/events/{event.id}", headers=admin_headers, json={"status": "sold_out"})
    assert good.status_code == 200
    assert good.json()["event"]["status"] == "sold_out"


def test_delete_blocked_by_active_booking(client, admin_headers, make_event, make_booking, customer, db_session):
    event = make_event()
    make_booking(customer, event=event, status="pending")

    response = client.delete(f"/api/v1/events/{event.id}", headers=admin_headers)

    assert response.status_code == 400
    assert db_session.query(Event).filter(Event.id == event.id).count() == 1


def test_delete_allowed_when_all_bookings_cancelled(client, admin_headers, make_event, make_booking, customer, db_session):
    event = make_event(seats=3)
    booking = make_booking(customer, event=event, status="cancelled")

    response = client.delete(f"/api/v1/events/{event.id}", headers=admin_headers)

    assert response.status_code == 200
    assert db_session.query(Event).filter(Event.id == event.id).count() == 0
    assert db_session.query(EventSeat).count() == 0
    assert db_session.get(Booking, booking.id).event_id is None


def test_delete_unknown_event(client, admin_headers):
    assert client.delete("/api/v1/events/missing", headers=admin_headers).status_code == 404


def test_seats_404_when_event_has_none(client, make_event):
    event = make_event(seats=0)

    response = client.get(f"/api/v1/events/{event.id}/seats")

    assert response.status_code == 404


def test_select_seats(client, customer, customer_headers, make_event, db_session):
    event = make_event(seats=3)
    seat_ids = [seat.id for seat in db_session.query(EventSeat).filter(EventSeat.event_id == event.id).limit(2)]

    response = client.put(
        f"/api/v1/events/{event.id}/seats",
        headers=customer_headers,
        json={"seat_ids": seat_ids, "status": "selected"}
    )

    assert response.status_code == 200
    assert response.json()["updated_seats"] == 2
    seat = db_session.get(EventSeat, seat_ids[0])
    assert seat.status == "selected"
    assert seat.reserved_by == customer.id
    assert seat.reserved_at is not None


def test_select_seats_invalid_status(client, customer_headers, make_event, db_session):
    event = make_event(seats=1)
    seat = db_session.query(EventSeat).first()

    response = client.put(
        f"/api/v1/events/{event.id}/seats",
        headers=customer_headers,
        json={"seat_ids": [seat.id], "status": "broken"}
    )

    assert response.status_code == 400


def test_update_event_rejects_null_required_field(client, admin_headers, make_event, db_session):
    event = make_event("Rock Fest")

    response = client.put(f"/api/v1/events/{event.id}", headers=admin_headers, json={"title": None})

    assert response.status_code == 400
    assert response.json()["detail"] == "title cannot be null"
    db_session.expire_all()
    assert db_session.get(Event, event.id).title == "Rock Fest"


def test_update_event_allows_clearing_optional_field(client, admin_headers, make_event):
    event = make_event(artist="Los Héroes")

    response = client.put(f"/api/v1/events/{event.id}", headers=admin_headers, json={"artist": None})

    assert response.status_code == 200
    assert response.json()["event"]["artist"] is None


def test_stranger_cannot_release_booked_seat(client, customer_headers, make_user, make_event, db_session):
    event = make_event(seats=2)
    seat = db_session.query(EventSeat).filter(EventSeat.event_id == event.id).first()
    seat_id = seat.id
    booked = client.post("/api/v1/bookings/", headers=customer_headers, json={
        "booking_type": "event",
        "event_id": event.id,
        "seat_ids": [seat_id],
        "total_amount": "80.00"
    })
    assert booked.status_code == 201
    stranger_headers = auth_headers_for(make_user("customer"))

    released = client.put(
        f"/api/v1/events/{event.id}/seats",
        headers=stranger_headers,
        json={"seat_ids": [seat_id], "status": "available"}
    )
    rebooked = client.post("/api/v1/bookings/", headers=stranger_headers, json={
        "booking_type": "event",
        "event_id": event.id,
        "seat_ids": [seat_id],
        "total_amount": "80.00"
    })

    assert released.status_code == 400
    assert rebooked.status_code == 400
    assert db_session.get(EventSeat, seat_id).status == "reserved"
    assert db_session.query(Booking).filter(Booking.event_id == event.id).count() == 1


def test_stranger_cannot_take_over_selected_seat(client, customer, customer_headers, make_user, make_event, db_session):
    event = make_event(seats=1)
    seat_id = db_session.query(EventSeat).filter(EventSeat.event_id == event.id).one().id
    client.put(
        f"/api/v1/events/{event.id}/seats",
        headers=customer_headers,
        json={"seat_ids": [seat_id], "status": "selected"}
    )

    response = client.put(
        f"/api/v1/events/{event.id}/seats",
        headers=auth_headers_for(make_user("customer")),
        json={"seat_ids": [seat_id], "status": "available"}
    )

    assert response.status_code == 400
    assert db_session.get(EventSeat, seat_id).reserved_by == customer.id


def test_customer_releases_own_selected_seat(client, customer_headers, make_event, db_session):
    event = make_event(seats=1)
    seat_id = db_session.query(EventSeat).filter(EventSeat.event_id == event.id).one().id
    for seat_status in ("selected", "available"):
        response = client.put(
            f"/api/v1/events/{event.id}/seats",
            headers=customer_headers,
            json={"seat_ids": [seat_id], "status": seat_status}
        )
        assert response.status_code == 200

    seat = db_session.get(EventSeat, seat_id)
    assert seat.status == "available"
    assert seat.reserved_by is None


def test_customer_cannot_reserve_seat_directly(client, customer_headers, make_event, db_session):
    event = make_event(seats=1)
    seat = db_session.query(EventSeat).filter(EventSeat.event_id == event.id).one()

    response = client.put(
        f"/api/v1/events/{event.id}/seats",
        headers=customer_headers,
        json={"seat_ids": [seat.id], "status": "occupied"}
    )

    assert response.status_code == 400
    assert seat.status == "available"


def test_operator_can_release_reserved_seat(client, operator_headers, make_event, db_session):
    event = make_event(seats=1)
    seat = db_session.query(EventSeat).filter(EventSeat.event_id == event.id).one()
    seat.status = "reserved"
    db_session.commit()

    response = client.put(
        f"/api/v1/events/{event.id}/seats",
        headers=operator_headers,
        json={"seat_ids": [seat.id], "status": "available"}
    )

    assert response.status_code == 200
    assert db_session.get(EventSeat, seat.id).status == "available"
