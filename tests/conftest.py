import os

# Settings are read at import time, so the test environment must exist first
os.environ["SECRET_KEY"] = "test-secret-key-for-storefront"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_JSON"] = "false"

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.database import Base, get_db
from storefront.main import app
from storefront.cache import cache
from storefront.models import (
    Profile, UserRole, Venue, Event, EventSeat, TransportCompany, TransportRoute, Booking, utcnow
)
from storefront.auth.service import default_permissions
from storefront.auth.utils import create_access_token, get_password_hash

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "secret123"


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(role="customer", email=None, full_name=None, phone=None):
        counter["n"] += 1
        user = Profile(
            email=email or f"{role}{counter['n']}@boleteria.pe",
            password_hash=get_password_hash(TEST_PASSWORD),
            full_name=full_name or f"{role.title()} User {counter['n']}",
            phone=phone
        )
        db_session.add(user)
        db_session.flush()
        db_session.add(UserRole(user_id=user.id, role=role, permissions=default_permissions(role)))
        db_session.commit()
        return user

    return _make


def auth_headers_for(user, role="customer"):
    token = create_access_token({"sub": user.id, "roles": [role]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(make_user):
    return make_user("customer")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def operator(make_user):
    return make_user("operator")


@pytest.fixture
def customer_headers(customer):
    return auth_headers_for(customer, "customer")


@pytest.fixture
def admin_headers(admin):
    return auth_headers_for(admin, "admin")


@pytest.fixture
def operator_headers(operator):
    return auth_headers_for(operator, "operator")


@pytest.fixture
def make_venue(db_session):
    def _make(name="Estadio Nacional", city="Lima", capacity=500):
        venue = Venue(name=name, address="Av. José Díaz s/n", city=city, capacity=capacity)
        db_session.add(venue)
        db_session.commit()
        return venue

    return _make


@pytest.fixture
def make_event(db_session, make_venue):
    def _make(title="Rock Fest", venue=None, status="active", category="concert",
              days_ahead=30, seats=0, artist=None, price=Decimal("80.00")):
        venue = venue or make_venue()
        event = Event(
            title=title,
            description=f"{title} live",
            venue_id=venue.id,
            artist=artist,
            category=category,
            start_date=utcnow() + timedelta(days=days_ahead),
            price_from=price,
            price_to=price * 2,
            status=status
        )
        db_session.add(event)
        db_session.flush()
        for number in range(1, seats + 1):
            db_session.add(EventSeat(
                event_id=event.id,
                section="General",
                row_number="A",
                seat_number=str(number),
                price=price,
                status="available"
            ))
        db_session.commit()
        return event

    return _make


@pytest.fixture
def make_company(db_session):
    def _make(name="Cruz del Sur"):
        company = TransportCompany(name=name, rating=Decimal("4.5"), phone="+51 1 311 5050")
        db_session.add(company)
        db_session.commit()
        return company

    return _make


@pytest.fixture
def make_route(db_session, make_company):
    def _make(origin="Lima", destination="Arequipa", company=None, status="active",
              total_seats=40, available_seats=None, departure=None, vehicle_type="bus"):
        company = company or make_company()
        departure = departure or datetime(2026, 12, 15, 8, 0, 0)
        route = TransportRoute(
            company_id=company.id,
            origin=origin,
            destination=destination,
            vehicle_type=vehicle_type,
            departure_time=departure,
            arrival_time=departure + timedelta(hours=16),
            duration=Decimal("16"),
            distance_km=Decimal("1010"),
            price_from=Decimal("90.00"),
            price_to=Decimal("180.00"),
            total_seats=total_seats,
            available_seats=total_seats if available_seats is None else available_seats,
            amenities=["wifi", "toilet"],
            status=status
        )
        db_session.add(route)
        db_session.commit()
        return route

    return _make


@pytest.fixture
def make_booking(db_session):
    counter = {"n": 0}

    def _make(user, event=None, route=None, status="pending", total_amount=Decimal("100.00"),
              tickets_quantity=1, created_at=None):
        counter["n"] += 1
        booking = Booking(
            booking_reference=f"BKTEST{counter['n']:06d}",
            user_id=user.id,
            booking_type="event" if event is not None else "transport",
            event_id=event.id if event is not None else None,
            route_id=route.id if route is not None else None,
            tickets_quantity=tickets_quantity,
            total_amount=total_amount,
            status=status
        )
        if created_at is not None:
            booking.created_at = created_at
        db_session.add(booking)
        db_session.commit()
        return booking

    return _make
