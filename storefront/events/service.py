import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from storefront.cache import cache
from storefront.models import Event, EventSeat, Venue, Booking, utcnow
from storefront.events.schemas import EventCreate, EventUpdate, SeatSectionLayout, SeatStatus, EventStatus
from storefront.venues.service import serialize_venue
from storefront.utils import as_float, as_iso, plain_values, reject_nulls

logger = logging.getLogger(__name__)

EVENT_STATUSES = [s.value for s in EventStatus]
SEAT_STATUSES = [s.value for s in SeatStatus]
EVENT_REQUIRED_FIELDS = ("title", "venue_id", "category", "start_date", "price_from", "status")
HELD_SEAT_STATUSES = (SeatStatus.RESERVED.value, SeatStatus.OCCUPIED.value)

def serialize_event(event: Event, include_venue: bool = True) -> dict:
    data = {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "start_date": as_iso(event.start_date),
        "end_date": as_iso(event.end_date),
        "price_from": as_float(event.price_from),
        "price_to": as_float(event.price_to),
        "image_url": event.image_url,
        "category": event.category,
        "status": event.status,
        "artist": event.artist,
        "duration": event.duration,
        "age_restriction": event.age_restriction,
        "rating": as_float(event.rating),
        "venue_id": event.venue_id,
        "created_at": as_iso(event.created_at)
    }
    if include_venue:
        data["venue"] = serialize_venue(event.venue) if event.venue else None
    return data

def serialize_seat(seat: EventSeat) -> dict:
    return {
        "id": seat.id,
        "section": seat.section,
        "row": seat.row_number,
        "number": seat.seat_number,
        "price": as_float(seat.price),
        "status": seat.status,
        "category": seat.category or "general"
    }

def group_seats_by_section(seats: List[dict]) -> Dict[str, List[dict]]:
    grouped = defaultdict(list)
    for seat in seats:
        grouped[seat["section"]].append(seat)
    return dict(grouped)

def _row_label(index: int) -> str:
    # Rows A..Z, then numeric labels
    return chr(ord("A") + index - 1) if index <= 26 else str(index)

class EventService:
    @staticmethod
    def list_events(
        db: Session,
        skip: int = 0,
        limit: int = 20,
        category: Optional[str] = None,
        city: Optional[str] = None,
        status: str = "active",
        search: Optional[str] = None
    ) -> Tuple[List[Event], int]:
        """Events with optional filters, ordered by start date"""
        query = db.query(Event).options(joinedload(Event.venue))

        if status and status != "all":
            query = query.filter(Event.status == status)

        if category and category != "all":
            query = query.filter(Event.category == category)

        if city and city != "all":
            query = query.filter(Event.venue.has(Venue.city == city))

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Event.title.ilike(pattern),
                    Event.description.ilike(pattern),
                    Event.artist.ilike(pattern)
                )
            )

        total = query.count()
        events = query.order_by(Event.start_date.asc()).offset(skip).limit(limit).all()

        return events, total

    @staticmethod
    def get_event(db: Session, event_id: str) -> Optional[Event]:
        return db.query(Event).options(
            joinedload(Event.venue),
            joinedload(Event.seats)
        ).filter(Event.id == event_id).first()

    @staticmethod
    def count_active_bookings(db: Session, event_id: str) -> int:
        """Bookings referencing the event that are not cancelled"""
        return db.query(Booking).filter(
            Booking.event_id == event_id,
            Booking.status != "cancelled"
        ).count()

    @staticmethod
    def _build_seats(event_id: str, layout: List[SeatSectionLayout]) -> List[EventSeat]:
        seats = []
        for block in layout:
            for row in range(1, block.rows + 1):
                for number in range(1, block.seats_per_row + 1):
                    seats.append(EventSeat(
                        event_id=event_id,
                        section=block.section,
                        row_number=_row_label(row),
                        seat_number=str(number),
                        price=block.price,
                        category=block.category.value,
                        status=SeatStatus.AVAILABLE.value
                    ))
        return seats

    @staticmethod
    def create_event(db: Session, event_data: EventCreate) -> Event:
        """Create an active event, generating its seats from the optional layout"""
        venue = db.query(Venue).filter(Venue.id == event_data.venue_id).first()
        if not venue:
            raise ValueError(f"Venue {event_data.venue_id} not found")

        fields = plain_values(event_data.model_dump(exclude={"seat_layout"}))
        event = Event(**fields, status=EventStatus.ACTIVE.value)
        db.add(event)
        db.flush()

        seats = EventService._build_seats(event.id, event_data.seat_layout)
        if seats:
            db.add_all(seats)

        db.commit()
        db.refresh(event)
        cache.delete(cache.VENUES_KEY)
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        logger.info(f"Event created: {event.title} with {len(seats)} seats", extra={"event_id": event.id})
        return event

    @staticmethod
    def update_event(db: Session, event_id: str, event_data: EventUpdate) -> Optional[Event]:
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            return None

        update_data = plain_values(event_data.model_dump(exclude_unset=True))
        reject_nulls(update_data, EVENT_REQUIRED_FIELDS)

        if "venue_id" in update_data and update_data["venue_id"] != event.venue_id:
            if not db.query(Venue).filter(Venue.id == update_data["venue_id"]).first():
                raise ValueError(f"Venue {update_data['venue_id']} not found")

        for field, value in update_data.items():
            setattr(event, field, value)

        db.commit()
        db.refresh(event)
        if "venue_id" in update_data:
            cache.delete(cache.VENUES_KEY)
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        return event

    @staticmethod
    def update_event_status(db: Session, event_id: str, status: Optional[str]) -> Optional[Event]:
        if not status or status not in EVENT_STATUSES:
            raise ValueError("Invalid status. Must be active, cancelled, or sold_out")

        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            return None

        event.status = status
        db.commit()
        db.refresh(event)
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        logger.info(f"Event status changed to {status}", extra={"event_id": event_id})
        return event

    @staticmethod
    def delete_event(db: Session, event_id: str) -> bool:
        """Delete an event unless bookings still reference it"""
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            return False

        if EventService.count_active_bookings(db, event_id) > 0:
            raise ValueError("Cannot delete event with active bookings")

        # Cancelled bookings keep their history without the event
        db.query(Booking).filter(Booking.event_id == event_id).update(
            {Booking.event_id: None}, synchronize_session=False
        )
        db.delete(event)
        db.commit()
        cache.delete(cache.VENUES_KEY)
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        logger.info("Event deleted", extra={"event_id": event_id})
        return True

    @staticmethod
    def get_event_seats(db: Session, event_id: str) -> List[EventSeat]:
        return db.query(EventSeat).filter(
            EventSeat.event_id == event_id
        ).order_by(EventSeat.section, EventSeat.row_number, EventSeat.seat_number).all()

    @staticmethod
    def update_seat_status(
        db: Session,
        event_id: str,
        seat_ids: List[str],
        status: str,
        user_id: Optional[str] = None,
        staff: bool = False
    ) -> List[EventSeat]:
        """
        Set the status of the given seats of one event.

        Customers may only select or release seats that nobody else holds;
        reserved and occupied seats belong to a booking and change through it.
        """
        if status not in SEAT_STATUSES:
            raise ValueError("Invalid seat status")
        if not staff and status in HELD_SEAT_STATUSES:
            raise ValueError("Seats can only be reserved through a booking")

        seats = db.query(EventSeat).filter(
            EventSeat.id.in_(seat_ids),
            EventSeat.event_id == event_id
        ).all()

        if not staff:
            for seat in seats:
                held = seat.status in HELD_SEAT_STATUSES
                taken = seat.status == SeatStatus.SELECTED.value and seat.reserved_by not in (None, user_id)
                if held or taken:
                    raise ValueError("Some seats are held by another customer")

        for seat in seats:
            seat.status = status
            if user_id:
                seat.reserved_by = user_id
            if status == SeatStatus.SELECTED.value:
                seat.reserved_at = utcnow()
            if status == SeatStatus.AVAILABLE.value:
                seat.reserved_by = None
                seat.reserved_at = None

        db.commit()
        return seats
