import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Date, Text, ForeignKey, Numeric, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base

def generate_uuid() -> str:
    return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

# ================================
# Profiles & Roles
# ================================
class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255))
    phone = Column(String(50))
    address = Column(String(255))
    city = Column(String(100))
    country = Column(String(100))
    avatar_url = Column(Text)
    last_sign_in_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    user_roles = relationship("UserRole", back_populates="profile", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="profile")

class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, index=True)
    permissions = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="user_roles")

# ================================
# Venues / Events / Seats
# ================================
class Venue(Base):
    __tablename__ = "venues"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, index=True)
    address = Column(String(255))
    city = Column(String(100), index=True)
    capacity = Column(Integer)
    seating_map = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    events = relationship("Event", back_populates="venue")

class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    venue_id = Column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
    artist = Column(String(255))
    category = Column(String(50), nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True))
    price_from = Column(Numeric(10, 2), nullable=False)
    price_to = Column(Numeric(10, 2))
    image_url = Column(Text)
    duration = Column(String(50))
    age_restriction = Column(String(50))
    rating = Column(Numeric(3, 2), default=0)
    status = Column(String(20), default="active", index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    venue = relationship("Venue", back_populates="events")
    seats = relationship("EventSeat", back_populates="event", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="event")

class EventSeat(Base):
    __tablename__ = "event_seats"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    section = Column(String(50), nullable=False)
    row_number = Column(String(10), nullable=False)
    seat_number = Column(String(10), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(20), default="general")
    status = Column(String(20), default="available", index=True)
    reserved_by = Column(String(36))
    reserved_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relationships
    event = relationship("Event", back_populates="seats")

# ================================
# Transport Companies & Routes
# ================================
class TransportCompany(Base):
    __tablename__ = "transport_companies"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    logo_url = Column(Text)
    rating = Column(Numeric(3, 2), default=0)
    phone = Column(String(50))
    email = Column(String(255))
    website = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    routes = relationship("TransportRoute", back_populates="company")

class TransportRoute(Base):
    __tablename__ = "transport_routes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    company_id = Column(String(36), ForeignKey("transport_companies.id"), nullable=False, index=True)
    origin = Column(String(255), nullable=False, index=True)
    destination = Column(String(255), nullable=False, index=True)
    vehicle_type = Column(String(20), nullable=False)
    departure_time = Column(DateTime(timezone=True), nullable=False, index=True)
    arrival_time = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Numeric(5, 2))
    distance_km = Column(Numeric(8, 2))
    price_from = Column(Numeric(10, 2))
    price_to = Column(Numeric(10, 2))
    total_seats = Column(Integer, default=0)
    available_seats = Column(Integer, default=0)
    amenities = Column(JSON, default=list)
    image_url = Column(Text)
    status = Column(String(20), default="active", index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    company = relationship("TransportCompany", back_populates="routes")
    bookings = relationship("Booking", back_populates="route")

# ================================
# Bookings & Payments
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    booking_reference = Column(String(40), unique=True, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    booking_type = Column(String(20), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id"), index=True)
    route_id = Column(String(36), ForeignKey("transport_routes.id"), index=True)
    booking_date = Column(DateTime(timezone=True), default=utcnow)
    travel_date = Column(Date)
    departure_time = Column(String(20))
    seat_numbers = Column(JSON, default=list)
    seat_ids = Column(JSON, default=list)
    passenger_info = Column(JSON, default=dict)
    tickets_quantity = Column(Integer, default=1)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), default="pending", index=True)
    payment_status = Column(String(20), default="pending")
    cancellation_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="bookings")
    event = relationship("Event", back_populates="bookings")
    route = relationship("TransportRoute", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking", cascade="all, delete-orphan")

class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String(20), nullable=False)
    status = Column(String(20), default="pending", index=True)
    transaction_id = Column(String(100))
    payment_date = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    booking = relationship("Booking", back_populates="payments")
