import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.auth.dependencies import get_current_user, require_admin, is_staff
from storefront.events.schemas import EventCreate, EventUpdate, EventStatusUpdate, SeatStatusUpdate
from storefront.events.service import (
    EventService, serialize_event, serialize_seat, group_seats_by_section
)
from storefront.utils import page_info

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/")
def get_events(
    category: Optional[str] = Query(None, description="Filter by category"),
    city: Optional[str] = Query(None, description="Filter by venue city"),
    status_filter: str = Query("active", alias="status", description="Event status or 'all'"),
    search: Optional[str] = Query(None, description="Search title, description and artist"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Get events with optional filters"""
    try:
        events, total = EventService.list_events(
            db,
            skip=offset,
            limit=limit,
            category=category,
            city=city,
            status=status_filter,
            search=search
        )
    except Exception:
        logger.exception("Error fetching events")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching events"
        )

    return {
        "events": [serialize_event(event) for event in events],
        **page_info(total, offset, limit)
    }

@router.get("/{event_id}")
def get_event(event_id: str, db: Session = Depends(get_db)):
    """Get event details with venue, seats and active booking count"""
    event = EventService.get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    event_data = serialize_event(event)
    event_data["venue"] = {
        **event_data["venue"],
        "seating_map": event.venue.seating_map
    } if event.venue else None
    event_data["event_seats"] = [
        {
            "id": seat.id,
            "section": seat.section,
            "row_number": seat.row_number,
            "seat_number": seat.seat_number,
            "price": float(seat.price),
            "status": seat.status
        }
        for seat in event.seats
    ]

    return {
        "event": event_data,
        "bookings_count": EventService.count_active_bookings(db, event_id)
    }

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_event(
    event_data: EventCreate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a new event (admin)"""
    try:
        event = EventService.create_event(db, event_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception("Error creating event")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating event"
        )

    return {"message": "Event created successfully", "event": serialize_event(event)}

@router.put("/{event_id}")
def update_event(
    event_id: str,
    event_data: EventUpdate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update an event (admin)"""
    try:
        event = EventService.update_event(db, event_id, event_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return {"message": "Event updated successfully", "event": serialize_event(event)}

@router.patch("/{event_id}")
def update_event_status(
    event_id: str,
    status_update: EventStatusUpdate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Change the status of an event (admin)"""
    try:
        event = EventService.update_event_status(db, event_id, status_update.status)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return {
        "message": "Event status updated successfully",
        "event": {
            "id": event.id,
            "title": event.title,
            "status": event.status,
            "updated_at": event.updated_at.isoformat() if event.updated_at else None
        }
    }

@router.delete("/{event_id}")
def delete_event(
    event_id: str,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete an event without active bookings (admin)"""
    try:
        deleted = EventService.delete_event(db, event_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return {"message": "Event deleted successfully"}

# Seat map endpoints
@router.get("/{event_id}/seats")
def get_event_seats(event_id: str, db: Session = Depends(get_db)):
    """Get the seat map of an event grouped by section"""
    event = EventService.get_event(db, event_id)
    seats = EventService.get_event_seats(db, event_id) if event else []

    if not seats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found or has no seats"
        )

    formatted_seats = [serialize_seat(seat) for seat in seats]
    return {
        "success": True,
        "event": {
            "id": event.id,
            "title": event.title,
            "start_date": event.start_date.isoformat(),
            "venue": {
                "name": event.venue.name,
                "address": event.venue.address,
                "city": event.venue.city
            } if event.venue else None
        },
        "seats": formatted_seats,
        "seats_by_section": group_seats_by_section(formatted_seats)
    }

@router.put("/{event_id}/seats")
def update_event_seats(
    event_id: str,
    seat_update: SeatStatusUpdate,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the status of selected seats"""
    try:
        seats = EventService.update_seat_status(
            db, event_id, seat_update.seat_ids, seat_update.status,
            user_id=current_user.id, staff=is_staff(db, current_user)
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception("Error updating seat status")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating seats"
        )

    return {
        "success": True,
        "updated_seats": len(seats),
        "seats": [serialize_seat(seat) for seat in seats]
    }
