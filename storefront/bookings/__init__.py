"""
Bookings Module

Event and transport bookings for customers: creation with seat holds,
listing, status changes within the allow-list, cancellation that gives seats
back, and payment confirmation.
"""

from .router import router
from .service import BookingService
from .schemas import BookingCreate, BookingStatus, BookingType, PaymentMethod

__all__ = [
    "router",
    "BookingService",
    "BookingCreate",
    "BookingStatus",
    "BookingType",
    "PaymentMethod"
]
