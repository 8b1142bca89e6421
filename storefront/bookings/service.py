import time
import uuid
import secrets
import string
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from storefront.cache import cache
from storefront.models import Booking, Event, EventSeat, TransportRoute, Payment, utcnow
from storefront.bookings.schemas import (
    BookingCreate, BookingType, BookingStatus, PaymentStatus, PaymentMethod, FINAL_STATUSES
)
from storefront.events.schemas import SeatStatus
from storefront.utils import as_float, as_iso

logger = logging.getLogger(__name__)

BOOKING_TYPES = [t.value for t in BookingType]
BOOKING_STATUSES = [s.value for s in BookingStatus]
PAYMENT_METHODS = [m.value for m in PaymentMethod]

BASE36_ALPHABET = string.digits + string.ascii_uppercase
DEFAULT_CANCELLATION_REASON = "Cancelled by user"

def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))

def generate_booking_reference() -> str:
    """BK + base36 millisecond timestamp + 6 random base36 characters"""
    timestamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(6))
    return f"BK{timestamp}{random_part}"

def serialize_payment(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "status": payment.status,
        "method": payment.method,
        "amount": as_float(payment.amount),
        "transaction_id": payment.transaction_id,
        "payment_date": as_iso(payment.payment_date)
    }

def serialize_booking(booking: Booking, detailed: bool = False) -> dict:
    data = {
        "id": booking.id,
        "booking_reference": booking.booking_reference,
        "user_id": booking.user_id,
        "booking_type": booking.booking_type,
        "event_id": booking.event_id,
        "route_id": booking.route_id,
        "booking_date": as_iso(booking.booking_date),
        "travel_date": as_iso(booking.travel_date),
        "departure_time": booking.departure_time,
        "seat_numbers": booking.seat_numbers or [],
        "seat_ids": booking.seat_ids or [],
        "passenger_info": booking.passenger_info or {},
        "tickets_quantity": booking.tickets_quantity,
        "total_amount": as_float(booking.total_amount),
        "status": booking.status,
        "payment_status": booking.payment_status,
        "cancellation_reason": booking.cancellation_reason,
        "created_at": as_iso(booking.created_at),
        "updated_at": as_iso(booking.updated_at)
    }

    event = booking.event
    data["events"] = {
        "id": event.id,
        "title": event.title,
        "start_date": as_iso(event.start_date),
        "image_url": event.image_url,
        "venues": {
            "name": event.venue.name,
            "address": event.venue.address,
            "city": event.venue.city
        } if event.venue else None
    } if event else None

    route = booking.route
    data["transport_routes"] = {
        "id": route.id,
        "origin": route.origin,
        "destination": route.destination,
        "departure_time": as_iso(route.departure_time),
        "arrival_time": as_iso(route.arrival_time),
        "transport_companies": {"name": route.company.name} if route.company else None
    } if route else None

    if detailed:
        if event:
            data["events"].update({
                "description": event.description,
                "end_date": as_iso(event.end_date),
                "artist": event.artist,
                "category": event.category
            })
            if event.venue:
                data["events"]["venues"].update({"id": event.venue.id, "capacity": event.venue.capacity})
        if route and route.company:
            data["transport_routes"]["transport_companies"].update({
                "id": route.company.id,
                "phone": route.company.phone,
                "rating": as_float(route.company.rating)
            })
        data["payments"] = [serialize_payment(payment) for payment in booking.payments]

    return data

class BookingService:
    @staticmethod
    def _query(db: Session):
        return db.query(Booking).options(
            joinedload(Booking.event).joinedload(Event.venue),
            joinedload(Booking.route).joinedload(TransportRoute.company)
        )

    @staticmethod
    def list_bookings(
        db: Session,
        user_id: str,
        status: Optional[str] = None,
        booking_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Booking], int]:
        """Bookings of one user, newest first"""
        query = BookingService._query(db).filter(Booking.user_id == user_id)

        if status and status != "all":
            query = query.filter(Booking.status == status)

        if booking_type and booking_type != "all":
            query = query.filter(Booking.booking_type == booking_type)

        total = query.count()
        bookings = query.order_by(Booking.created_at.desc()).offset(skip).limit(limit).all()

        return bookings, total

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return BookingService._query(db).options(
            joinedload(Booking.payments)
        ).filter(Booking.id == booking_id).first()

    @staticmethod
    def _reserve_event_seats(db: Session, event_id: str, seat_ids: List[str], user_id: str) -> List[EventSeat]:
        unique_ids = list(dict.fromkeys(seat_ids))
        seats = db.query(EventSeat).filter(
            EventSeat.id.in_(unique_ids),
            EventSeat.event_id == event_id
        ).all()

        if len(seats) != len(unique_ids):
            raise ValueError("Some seats do not belong to this event")

        bookable = (SeatStatus.AVAILABLE.value, SeatStatus.SELECTED.value)
        if any(seat.status not in bookable for seat in seats):
            raise ValueError("Some seats are no longer available")

        now = utcnow()
        for seat in seats:
            seat.status = SeatStatus.RESERVED.value
            seat.reserved_by = user_id
            seat.reserved_at = now
        return seats

    @staticmethod
    def create_booking(db: Session, booking_data: BookingCreate, user_id: str) -> Booking:
        """Create a pending booking and hold its seats"""
        if booking_data.booking_type not in BOOKING_TYPES:
            raise ValueError("Invalid booking type. Must be event or transport")

        if booking_data.total_amount <= 0:
            raise ValueError("total_amount must be greater than 0")

        seat_numbers = list(booking_data.seat_numbers)
        seat_ids: List[str] = []
        tickets_quantity = booking_data.tickets_quantity

        if booking_data.booking_type == BookingType.EVENT.value:
            if not booking_data.event_id:
                raise ValueError("event_id is required for event bookings")

            event = db.query(Event).filter(Event.id == booking_data.event_id).first()
            if not event or event.status != "active":
                raise ValueError("Event is not available for booking")

            if booking_data.seat_ids:
                seats = BookingService._reserve_event_seats(
                    db, event.id, booking_data.seat_ids, user_id
                )
                seat_ids = [seat.id for seat in seats]
                tickets_quantity = len(seats)
                if not seat_numbers:
                    seat_numbers = [f"{seat.section}-{seat.row_number}{seat.seat_number}" for seat in seats]
        else:
            if not booking_data.route_id:
                raise ValueError("route_id is required for transport bookings")

            route = db.query(TransportRoute).filter(TransportRoute.id == booking_data.route_id).first()
            if not route or route.status != "active":
                raise ValueError("Route is not available for booking")

            if (route.available_seats or 0) < tickets_quantity:
                raise ValueError("Not enough seats available")

            route.available_seats = route.available_seats - tickets_quantity

        booking = Booking(
            booking_reference=generate_booking_reference(),
            user_id=user_id,
            booking_type=booking_data.booking_type,
            event_id=booking_data.event_id if booking_data.booking_type == BookingType.EVENT.value else None,
            route_id=booking_data.route_id if booking_data.booking_type == BookingType.TRANSPORT.value else None,
            booking_date=utcnow(),
            travel_date=booking_data.travel_date,
            departure_time=booking_data.departure_time,
            seat_numbers=seat_numbers,
            seat_ids=seat_ids,
            passenger_info=booking_data.passenger_info,
            tickets_quantity=tickets_quantity,
            total_amount=booking_data.total_amount,
            status=BookingStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value
        )
        db.add(booking)
        db.commit()
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)

        logger.info(
            f"Booking created: {booking.booking_reference}",
            extra={"booking_id": booking.id, "user_id": user_id, "booking_type": booking.booking_type}
        )
        return BookingService.get_booking(db, booking.id)

    @staticmethod
    def _release_resources(db: Session, booking: Booking):
        """Give the booked seats back to the event or route"""
        if booking.seat_ids and booking.event_id:
            seats = db.query(EventSeat).filter(
                EventSeat.id.in_(booking.seat_ids),
                EventSeat.event_id == booking.event_id
            ).all()
            for seat in seats:
                seat.status = SeatStatus.AVAILABLE.value
                seat.reserved_by = None
                seat.reserved_at = None

        if booking.route_id:
            route = db.query(TransportRoute).filter(TransportRoute.id == booking.route_id).first()
            if route:
                restored = (route.available_seats or 0) + (booking.tickets_quantity or 0)
                route.available_seats = min(restored, route.total_seats or restored)

    @staticmethod
    def _apply_cancellation(db: Session, booking: Booking, reason: Optional[str]):
        BookingService._release_resources(db, booking)
        booking.status = BookingStatus.CANCELLED.value
        booking.cancellation_reason = reason or DEFAULT_CANCELLATION_REASON

    @staticmethod
    def update_status(
        db: Session,
        booking: Booking,
        status: Optional[str],
        cancellation_reason: Optional[str] = None
    ) -> Booking:
        """Move a booking to another status from the allow-list"""
        if not status or status not in BOOKING_STATUSES:
            raise ValueError(f"Invalid status. Allowed: {', '.join(BOOKING_STATUSES)}")

        current = booking.status
        if current in FINAL_STATUSES and status != current:
            raise ValueError(f"Cannot change status of {current} booking")

        if status == current:
            return booking

        if status == BookingStatus.CANCELLED.value:
            BookingService._apply_cancellation(db, booking, cancellation_reason)
        else:
            booking.status = status

        db.commit()
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        logger.info(
            f"Booking {booking.booking_reference} status {current} -> {status}",
            extra={"booking_id": booking.id}
        )
        return BookingService.get_booking(db, booking.id)

    @staticmethod
    def cancel_booking(db: Session, booking: Booking, reason: Optional[str] = None) -> Booking:
        if booking.status == BookingStatus.CANCELLED.value:
            raise ValueError("Booking is already cancelled")

        if booking.status == BookingStatus.COMPLETED.value:
            raise ValueError("Cannot cancel completed booking")

        BookingService._apply_cancellation(db, booking, reason)
        db.commit()
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        logger.info(f"Booking cancelled: {booking.booking_reference}", extra={"booking_id": booking.id})
        return booking

    @staticmethod
    def pay_booking(
        db: Session,
        booking: Booking,
        method: str,
        transaction_id: Optional[str] = None
    ) -> Payment:
        """Record the payment of a pending booking and confirm it"""
        if method not in PAYMENT_METHODS:
            raise ValueError(f"Invalid payment method. Allowed: {', '.join(PAYMENT_METHODS)}")

        if booking.status != BookingStatus.PENDING.value:
            raise ValueError(f"Cannot pay a {booking.status} booking")

        payment = Payment(
            booking_id=booking.id,
            user_id=booking.user_id,
            amount=booking.total_amount,
            method=method,
            status="completed",
            transaction_id=transaction_id or f"TX{uuid.uuid4().hex[:12].upper()}",
            payment_date=utcnow()
        )
        db.add(payment)

        if booking.seat_ids and booking.event_id:
            db.query(EventSeat).filter(
                EventSeat.id.in_(booking.seat_ids),
                EventSeat.event_id == booking.event_id
            ).update({EventSeat.status: SeatStatus.OCCUPIED.value}, synchronize_session=False)

        booking.status = BookingStatus.CONFIRMED.value
        booking.payment_status = PaymentStatus.PAID.value
        db.commit()
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        db.refresh(payment)

        logger.info(
            f"Payment recorded for {booking.booking_reference}",
            extra={"booking_id": booking.id, "method": method}
        )
        return payment
