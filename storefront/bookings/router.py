import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.auth.dependencies import get_current_user, is_staff
from storefront.auth.service import UserService
from storefront.bookings.schemas import BookingCreate, BookingStatusUpdate, BookingStatus, PaymentRequest
from storefront.bookings.service import BookingService, serialize_booking, serialize_payment
from storefront.utils import page_info

logger = logging.getLogger(__name__)

router = APIRouter()

def _forbidden():
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

def _get_accessible_booking(db: Session, booking_id: str, current_user):
    """Load a booking visible to the caller: its owner or staff"""
    booking = BookingService.get_booking(db, booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if booking.user_id != current_user.id and not is_staff(db, current_user):
        raise _forbidden()
    return booking

@router.get("/")
def get_bookings(
    user_id: Optional[str] = Query(None, description="Owner of the bookings (staff only for other users)"),
    status_filter: Optional[str] = Query(None, alias="status", description="Booking status or 'all'"),
    booking_type: Optional[str] = Query(None, alias="type", description="event, transport or 'all'"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the bookings of a user"""
    target_user_id = user_id or current_user.id
    if target_user_id != current_user.id and not is_staff(db, current_user):
        raise _forbidden()

    try:
        bookings, total = BookingService.list_bookings(
            db,
            user_id=target_user_id,
            status=status_filter,
            booking_type=booking_type,
            skip=offset,
            limit=limit
        )
    except Exception:
        logger.exception("Error fetching bookings")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching bookings"
        )

    return {
        "bookings": [serialize_booking(booking) for booking in bookings],
        **page_info(total, offset, limit)
    }

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_data: BookingCreate,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new event or transport booking"""
    user_id = booking_data.user_id or current_user.id
    if user_id != current_user.id:
        if not is_staff(db, current_user):
            raise _forbidden()
        if not UserService.get_user_by_id(db, user_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User not found")

    try:
        booking = BookingService.create_booking(db, booking_data, user_id=user_id)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        db.rollback()
        logger.exception("Error creating booking")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating booking"
        )

    return {"message": "Booking created successfully", "booking": serialize_booking(booking)}

@router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get booking details with event, route and payments"""
    booking = _get_accessible_booking(db, booking_id, current_user)
    return {"booking": serialize_booking(booking, detailed=True)}

@router.put("/{booking_id}")
def update_booking_status(
    booking_id: str,
    status_update: BookingStatusUpdate,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the status of a booking; customers may only cancel their own"""
    booking = _get_accessible_booking(db, booking_id, current_user)

    if status_update.status != BookingStatus.CANCELLED.value and not is_staff(db, current_user):
        raise _forbidden()

    try:
        booking = BookingService.update_status(
            db, booking, status_update.status, status_update.cancellation_reason
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"message": "Booking updated successfully", "booking": serialize_booking(booking)}

@router.delete("/{booking_id}")
def cancel_booking(
    booking_id: str,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel a booking and release its seats"""
    booking = _get_accessible_booking(db, booking_id, current_user)

    try:
        booking = BookingService.cancel_booking(db, booking)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {
        "message": "Booking cancelled successfully",
        "booking": {
            "id": booking.id,
            "booking_reference": booking.booking_reference,
            "status": booking.status,
            "cancellation_reason": booking.cancellation_reason
        }
    }

@router.post("/{booking_id}/pay")
def pay_booking(
    booking_id: str,
    payment_request: PaymentRequest,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Pay a pending booking, confirming it"""
    booking = _get_accessible_booking(db, booking_id, current_user)

    try:
        payment = BookingService.pay_booking(
            db, booking, payment_request.method, payment_request.transaction_id
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {
        "message": "Payment completed successfully",
        "payment": serialize_payment(payment),
        "booking": {
            "id": booking.id,
            "booking_reference": booking.booking_reference,
            "status": booking.status,
            "payment_status": booking.payment_status
        }
    }
