import pytest

from storefront.models import Booking, EventSeat, Payment, TransportRoute
from tests.conftest import auth_headers_for


def event_seat_ids(db_session, event, count):
    seats = db_session.query(EventSeat).filter(EventSeat.event_id == event.id).order_by(EventSeat.seat_number).all()
    return [seat.id for seat in seats[:count]]


class TestCreateBooking:
    def test_event_booking_reserves_seats(self, client, customer, customer_headers, make_event, db_session):
        event = make_event(seats=4)
        seat_ids = event_seat_ids(db_session, event, 2)

        response = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "event",
            "event_id": event.id,
            "seat_ids": seat_ids,
            "total_amount": "160.00"
        })

        assert response.status_code == 201
        booking = response.json()["booking"]
        assert booking["status"] == "pending"
        assert booking["payment_status"] == "pending"
        assert booking["user_id"] == customer.id
        assert booking["tickets_quantity"] == 2
        assert booking["booking_reference"].startswith("BK")
        assert booking["events"]["title"] == event.title

        statuses = {db_session.get(EventSeat, seat_id).status for seat_id in seat_ids}
        assert statuses == {"reserved"}

    def test_transport_booking_decrements_available_seats(self, client, customer_headers, make_route, db_session):
        route = make_route(total_seats=40, available_seats=10)

        response = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "transport",
            "route_id": route.id,
            "tickets_quantity": 3,
            "travel_date": "2026-12-15",
            "total_amount": "270.00"
        })

        assert response.status_code == 201
        assert response.json()["booking"]["transport_routes"]["transport_companies"]["name"] == "Cruz del Sur"
        assert db_session.get(TransportRoute, route.id).available_seats == 7

    def test_transport_booking_without_enough_seats(self, client, customer_headers, make_route, db_session):
        route = make_route(total_seats=40, available_seats=1)

        response = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "transport",
            "route_id": route.id,
            "tickets_quantity": 2,
            "total_amount": "180.00"
        })

        assert response.status_code == 400
        assert db_session.query(Booking).count() == 0

    def test_inactive_event_cannot_be_booked(self, client, customer_headers, make_event):
        event = make_event(status="cancelled")

        response = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "event",
            "event_id": event.id,
            "total_amount": "80.00"
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Event is not available for booking"

    def test_taken_seat_is_rejected(self, client, customer_headers, make_event, db_session):
        event = make_event(seats=2)
        seat_ids = event_seat_ids(db_session, event, 1)
        seat = db_session.get(EventSeat, seat_ids[0])
        seat.status = "occupied"
        db_session.commit()

        response = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "event",
            "event_id": event.id,
            "seat_ids": seat_ids,
            "total_amount": "80.00"
        })

        assert response.status_code == 400

    @pytest.mark.parametrize("payload,detail", [
        ({"booking_type": "flight", "total_amount": "10"}, "Invalid booking type. Must be event or transport"),
        ({"booking_type": "event", "total_amount": "0"}, "total_amount must be greater than 0"),
        ({"booking_type": "event", "total_amount": "10"}, "event_id is required for event bookings"),
        ({"booking_type": "transport", "total_amount": "10"}, "route_id is required for transport bookings"),
    ])
    def test_validation(self, client, customer_headers, payload, detail):
        response = client.post("/api/v1/bookings/", headers=customer_headers, json=payload)

        assert response.status_code == 400
        assert response.json()["detail"] == detail

    def test_missing_total_amount(self, client, customer_headers):
        response = client.post("/api/v1/bookings/", headers=customer_headers, json={"booking_type": "event"})
        assert response.status_code == 400

    def test_customer_cannot_book_for_someone_else(self, client, customer_headers, make_user, make_event):
        other = make_user("customer")
        event = make_event()

        response = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "event",
            "event_id": event.id,
            "user_id": other.id,
            "total_amount": "80.00"
        })

        assert response.status_code == 403

    def test_staff_books_on_behalf_of_customer(self, client, operator_headers, customer, make_event):
        event = make_event()

        response = client.post("/api/v1/bookings/", headers=operator_headers, json={
            "booking_type": "event",
            "event_id": event.id,
            "user_id": customer.id,
            "total_amount": "80.00"
        })

        assert response.status_code == 201
        assert response.json()["booking"]["user_id"] == customer.id

    def test_requires_authentication(self, client):
        response = client.post("/api/v1/bookings/", json={"booking_type": "event", "total_amount": "10"})
        assert response.status_code == 401


class TestListBookings:
    def test_lists_own_bookings_newest_first_with_filters(self, client, customer, customer_headers,
                                                         make_booking, make_event, make_route):
        event = make_event()
        route = make_route()
        first = make_booking(customer, event=event, status="confirmed")
        second = make_booking(customer, route=route, status="pending")
        make_booking(customer, event=event, status="cancelled")

        everything = client.get("/api/v1/bookings/", headers=customer_headers).json()
        assert everything["total"] == 3
        assert everything["bookings"][-1]["id"] == first.id

        transport = client.get("/api/v1/bookings/", headers=customer_headers, params={"type": "transport"}).json()
        assert [booking["id"] for booking in transport["bookings"]] == [second.id]

        confirmed = client.get("/api/v1/bookings/", headers=customer_headers, params={"status": "confirmed"}).json()
        assert [booking["id"] for booking in confirmed["bookings"]] == [first.id]

    def test_pagination_metadata(self, client, customer, customer_headers, make_booking, make_event):
        event = make_event()
        for _ in range(5):
            make_booking(customer, event=event)

        data = client.get("/api/v1/bookings/", headers=customer_headers, params={"limit": 2, "offset": 4}).json()

        assert len(data["bookings"]) == 1
        assert data["page"] == 3
        assert data["total_pages"] == 3

    def test_customer_cannot_list_other_users(self, client, customer_headers, make_user):
        other = make_user("customer")

        response = client.get("/api/v1/bookings/", headers=customer_headers, params={"user_id": other.id})

        assert response.status_code == 403

    def test_staff_lists_other_users(self, client, operator_headers, customer, make_booking, make_event):
        make_booking(customer, event=make_event())

        response = client.get("/api/v1/bookings/", headers=operator_headers, params={"user_id": customer.id})

        assert response.json()["total"] == 1


class TestBookingDetail:
    def test_owner_sees_detail(self, client, customer, customer_headers, make_booking, make_event):
        booking = make_booking(customer, event=make_event())

        response = client.get(f"/api/v1/bookings/{booking.id}", headers=customer_headers)

        assert response.status_code == 200
        detail = response.json()["booking"]
        assert detail["payments"] == []
        assert detail["events"]["venues"]["capacity"] == 500

    def test_other_customer_is_forbidden(self, client, customer, make_user, make_booking, make_event):
        booking = make_booking(customer, event=make_event())
        stranger = make_user("customer")

        response = client.get(f"/api/v1/bookings/{booking.id}", headers=auth_headers_for(stranger))

        assert response.status_code == 403

    def test_unknown_booking(self, client, customer_headers):
        assert client.get("/api/v1/bookings/nope", headers=customer_headers).status_code == 404


class TestStatusTransitions:
    @pytest.mark.parametrize("final_status", ["cancelled", "completed"])
    @pytest.mark.parametrize("new_status", ["pending", "confirmed"])
    def test_final_statuses_reject_changes(self, client, operator_headers, customer, make_booking,
                                           make_event, final_status, new_status):
        booking = make_booking(customer, event=make_event(), status=final_status)

        response = client.put(f"/api/v1/bookings/{booking.id}", headers=operator_headers, json={"status": new_status})

        assert response.status_code == 400
        assert response.json()["detail"] == f"Cannot change status of {final_status} booking"

    def test_completed_booking_cannot_be_cancelled_via_update(self, client, operator_headers, customer,
                                                              make_booking, make_event):
        booking = make_booking(customer, event=make_event(), status="completed")

        response = client.put(f"/api/v1/bookings/{booking.id}", headers=operator_headers, json={"status": "cancelled"})

        assert response.status_code == 400

    def test_resubmitting_current_status_is_not_a_change(self, client, operator_headers, customer,
                                                         make_booking, make_event):
        booking = make_booking(customer, event=make_event(), status="cancelled")

        response = client.put(f"/api/v1/bookings/{booking.id}", headers=operator_headers, json={"status": "cancelled"})

        assert response.status_code == 200
        assert response.json()["booking"]["status"] == "cancelled"

    def test_invalid_status(self, client, operator_headers, customer, make_booking, make_event):
        booking = make_booking(customer, event=make_event())

        response = client.put(f"/api/v1/bookings/{booking.id}", headers=operator_headers, json={"status": "refunded"})

        assert response.status_code == 400

    def test_staff_confirms_then_completes(self, client, operator_headers, customer, make_booking, make_event):
        booking = make_booking(customer, event=make_event())

        confirmed = client.put(f"/api/v1/bookings/{booking.id}", headers=operator_headers, json={"status": "confirmed"})
        completed = client.put(f"/api/v1/bookings/{booking.id}", headers=operator_headers, json={"status": "completed"})

        assert confirmed.json()["booking"]["status"] == "confirmed"
        assert completed.json()["booking"]["status"] == "completed"

    def test_customer_may_only_cancel(self, client, customer, customer_headers, make_booking, make_event):
        booking = make_booking(customer, event=make_event())

        confirm = client.put(f"/api/v1/bookings/{booking.id}", headers=customer_headers, json={"status": "confirmed"})
        cancel = client.put(
            f"/api/v1/bookings/{booking.id}",
            headers=customer_headers,
            json={"status": "cancelled", "cancellation_reason": "Change of plans"}
        )

        assert confirm.status_code == 403
        assert cancel.status_code == 200
        assert cancel.json()["booking"]["cancellation_reason"] == "Change of plans"

    def test_permission_is_checked_before_final_status(self, client, customer, customer_headers, operator_headers,
                                                       make_booking, make_event):
        booking = make_booking(customer, event=make_event(), status="completed")

        by_customer = client.put(f"/api/v1/bookings/{booking.id}", headers=customer_headers, json={"status": "pending"})
        customer_cancel = client.put(
            f"/api/v1/bookings/{booking.id}", headers=customer_headers, json={"status": "cancelled"}
        )
        by_staff = client.put(f"/api/v1/bookings/{booking.id}", headers=operator_headers, json={"status": "pending"})

        assert by_customer.status_code == 403
        assert customer_cancel.status_code == 400
        assert by_staff.status_code == 400


class TestCancellation:
    def test_cancel_releases_event_seats(self, client, customer_headers, make_event, db_session):
        event = make_event(seats=3)
        seat_ids = event_seat_ids(db_session, event, 2)
        created = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "event",
            "event_id": event.id,
            "seat_ids": seat_ids,
            "total_amount": "160.00"
        }).json()["booking"]

        response = client.delete(f"/api/v1/bookings/{created['id']}", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["booking"]["status"] == "cancelled"
        assert response.json()["booking"]["cancellation_reason"] == "Cancelled by user"
        seats = [db_session.get(EventSeat, seat_id) for seat_id in seat_ids]
        assert {seat.status for seat in seats} == {"available"}
        assert {seat.reserved_by for seat in seats} == {None}

    def test_cancel_restores_route_seats(self, client, customer_headers, make_route, db_session):
        route = make_route(total_seats=40, available_seats=10)
        created = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "transport",
            "route_id": route.id,
            "tickets_quantity": 4,
            "total_amount": "360.00"
        }).json()["booking"]
        assert db_session.get(TransportRoute, route.id).available_seats == 6

        client.delete(f"/api/v1/bookings/{created['id']}", headers=customer_headers)

        assert db_session.get(TransportRoute, route.id).available_seats == 10

    def test_cancel_twice(self, client, customer, customer_headers, make_booking, make_event):
        booking = make_booking(customer, event=make_event(), status="cancelled")

        response = client.delete(f"/api/v1/bookings/{booking.id}", headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Booking is already cancelled"

    def test_cannot_cancel_completed(self, client, customer, customer_headers, make_booking, make_event):
        booking = make_booking(customer, event=make_event(), status="completed")

        response = client.delete(f"/api/v1/bookings/{booking.id}", headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot cancel completed booking"


class TestPayment:
    def test_pay_confirms_pending_booking(self, client, customer_headers, make_event, db_session):
        event = make_event(seats=2)
        seat_ids = event_seat_ids(db_session, event, 1)
        created = client.post("/api/v1/bookings/", headers=customer_headers, json={
            "booking_type": "event",
            "event_id": event.id,
            "seat_ids": seat_ids,
            "total_amount": "80.00"
        }).json()["booking"]

        response = client.post(f"/api/v1/bookings/{created['id']}/pay", headers=customer_headers, json={"method": "yape"})

        assert response.status_code == 200
        body = response.json()
        assert body["booking"]["status"] == "confirmed"
        assert body["booking"]["payment_status"] == "paid"
        assert body["payment"]["amount"] == 80.0
        assert db_session.query(Payment).count() == 1
        assert db_session.get(EventSeat, seat_ids[0]).status == "occupied"

    def test_invalid_method(self, client, customer, customer_headers, make_booking, make_event):
        booking = make_booking(customer, event=make_event())

        response = client.post(f"/api/v1/bookings/{booking.id}/pay", headers=customer_headers, json={"method": "cash"})

        assert response.status_code == 400

    def test_only_pending_bookings_can_be_paid(self, client, customer, customer_headers, make_booking, make_event):
        booking = make_booking(customer, event=make_event(), status="confirmed")

        response = client.post(f"/api/v1/bookings/{booking.id}/pay", headers=customer_headers, json={"method": "card"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot pay a confirmed booking"
