from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

class VehicleType(str, Enum):
    """Vehicle type enumeration"""
    BUS = "bus"
    BOAT = "boat"
    TRAIN = "train"

class RouteStatus(str, Enum):
    """Transport route status enumeration"""
    ACTIVE = "active"
    CANCELLED = "cancelled"

class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    rating: Decimal = Field(Decimal("0"), ge=0, le=5)
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=0, le=5)
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

class RouteCreate(BaseModel):
    company_id: str
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    vehicle_type: str
    departure_time: datetime
    arrival_time: datetime
    duration: Optional[Decimal] = Field(None, ge=0)
    distance_km: Optional[Decimal] = Field(None, ge=0)
    price_from: Optional[Decimal] = Field(None, ge=0)
    price_to: Optional[Decimal] = Field(None, ge=0)
    total_seats: int = Field(0, ge=0)
    amenities: List[str] = []
    image_url: Optional[str] = None
    status: RouteStatus = RouteStatus.ACTIVE

class RouteUpdate(BaseModel):
    company_id: Optional[str] = None
    origin: Optional[str] = Field(None, min_length=1)
    destination: Optional[str] = Field(None, min_length=1)
    vehicle_type: Optional[str] = None
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    duration: Optional[Decimal] = Field(None, ge=0)
    distance_km: Optional[Decimal] = Field(None, ge=0)
    price_from: Optional[Decimal] = Field(None, ge=0)
    price_to: Optional[Decimal] = Field(None, ge=0)
    total_seats: Optional[int] = Field(None, ge=0)
    amenities: Optional[List[str]] = None
    image_url: Optional[str] = None
    status: Optional[RouteStatus] = None

class RouteStatusUpdate(BaseModel):
    status: Optional[str] = None
