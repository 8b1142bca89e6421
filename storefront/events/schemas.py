from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

class EventCategory(str, Enum):
    """Event category enumeration"""
    CONCERT = "concert"
    THEATER = "theater"
    SPORTS = "sports"
    CONFERENCE = "conference"
    CLUB = "club"

class EventStatus(str, Enum):
    """Event status enumeration"""
    ACTIVE = "active"
    SOLD_OUT = "sold_out"
    CANCELLED = "cancelled"

class SeatStatus(str, Enum):
    """Seat status enumeration"""
    AVAILABLE = "available"
    SELECTED = "selected"
    OCCUPIED = "occupied"
    RESERVED = "reserved"

class SeatCategory(str, Enum):
    GENERAL = "general"
    PREFERENCIAL = "preferencial"
    VIP = "vip"
    PLATEA = "platea"

class SeatSectionLayout(BaseModel):
    """Block of seats generated for a venue section"""
    section: str = Field(..., min_length=1)
    rows: int = Field(..., ge=1, le=100)
    seats_per_row: int = Field(..., ge=1, le=200)
    price: Decimal = Field(..., ge=0)
    category: SeatCategory = SeatCategory.GENERAL

class EventCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    venue_id: str
    artist: Optional[str] = None
    category: EventCategory
    start_date: datetime
    end_date: Optional[datetime] = None
    price_from: Decimal = Field(..., gt=0)
    price_to: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    duration: Optional[str] = None
    age_restriction: Optional[str] = None
    seat_layout: List[SeatSectionLayout] = []

class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    venue_id: Optional[str] = None
    artist: Optional[str] = None
    category: Optional[EventCategory] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    price_from: Optional[Decimal] = Field(None, gt=0)
    price_to: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    duration: Optional[str] = None
    age_restriction: Optional[str] = None
    status: Optional[EventStatus] = None

class EventStatusUpdate(BaseModel):
    status: Optional[str] = None

class SeatStatusUpdate(BaseModel):
    seat_ids: List[str] = Field(..., min_length=1)
    status: str
