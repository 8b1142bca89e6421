from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date
from decimal import Decimal
from enum import Enum

class BookingType(str, Enum):
    """Booking type enumeration"""
    EVENT = "event"
    TRANSPORT = "transport"

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class PaymentStatus(str, Enum):
    """Payment status enumeration"""
    PENDING = "pending"
    PAID = "paid"

class PaymentMethod(str, Enum):
    """Accepted payment methods"""
    MERCADO_PAGO = "mercado_pago"
    YAPE = "yape"
    PAYPAL = "paypal"
    CARD = "card"

# Bookings whose status can no longer change
FINAL_STATUSES = (BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value)

class BookingCreate(BaseModel):
    """Booking request for an event or a transport route"""
    booking_type: str
    total_amount: Decimal
    user_id: Optional[str] = None  # staff booking on behalf of a customer
    event_id: Optional[str] = None
    route_id: Optional[str] = None
    travel_date: Optional[date] = None
    departure_time: Optional[str] = None
    seat_numbers: List[str] = []
    seat_ids: List[str] = []
    passenger_info: Dict[str, Any] = {}
    tickets_quantity: int = Field(1, ge=1, le=20)

class BookingStatusUpdate(BaseModel):
    status: Optional[str] = None
    cancellation_reason: Optional[str] = None

class PaymentRequest(BaseModel):
    method: str
    transaction_id: Optional[str] = None
