#!/usr/bin/env python3

import os
from datetime import datetime, timedelta
from decimal import Decimal

from storefront.database import SessionLocal, init_db
from storefront.models import (
    Profile, UserRole, Venue, Event, EventSeat, TransportCompany, TransportRoute, Booking, Payment
)
from storefront.auth.service import default_permissions
from storefront.auth.utils import get_password_hash

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@boleteria.pe")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin123!")

def create_accounts(db):
    print("Creating accounts...")
    accounts = [
        (ADMIN_EMAIL, ADMIN_PASSWORD, "Administrador General", "admin"),
        ("operador@boleteria.pe", "Operator123!", "Operador de Taquilla", "operator"),
        ("cliente@boleteria.pe", "Customer123!", "Cliente Demo", "customer"),
    ]
    for email, password, full_name, role in accounts:
        profile = Profile(
            email=email,
            password_hash=get_password_hash(password),
            full_name=full_name,
            city="Lima",
            country="Perú"
        )
        db.add(profile)
        db.flush()
        db.add(UserRole(user_id=profile.id, role=role, permissions=default_permissions(role)))
    return len(accounts)

def create_seats(db, event, layout):
    seats = 0
    for section, rows, per_row, price, category in layout:
        for row in range(rows):
            for number in range(1, per_row + 1):
                db.add(EventSeat(
                    event_id=event.id,
                    section=section,
                    row_number=chr(ord("A") + row),
                    seat_number=str(number),
                    price=price,
                    category=category,
                    status="available"
                ))
                seats += 1
    return seats

def create_seed_data():
    init_db()
    db = SessionLocal()

    try:
        print("🚀 Creating seed data for the storefront...")

        # Clear existing data (in reverse dependency order)
        print("Clearing existing data...")
        db.query(Payment).delete()
        db.query(Booking).delete()
        db.query(EventSeat).delete()
        db.query(Event).delete()
        db.query(Venue).delete()
        db.query(TransportRoute).delete()
        db.query(TransportCompany).delete()
        db.query(UserRole).delete()
        db.query(Profile).delete()

        # 1. Accounts and roles
        account_count = create_accounts(db)

        # 2. Venues
        print("Creating venues...")
        venues = [
            Venue(name="Estadio Nacional", address="Av. José Díaz s/n", city="Lima", capacity=45000),
            Venue(name="Gran Teatro Nacional", address="Av. Javier Prado Este 2225", city="Lima", capacity=1500),
            Venue(name="Coliseo Cerrado", address="Av. Tullumayo", city="Cusco", capacity=3000),
        ]
        db.add_all(venues)
        db.flush()

        # 3. Events with seat maps
        print("Creating events and seats...")
        start = datetime.now().replace(hour=20, minute=0, second=0, microsecond=0)
        events = [
            Event(title="Festival de Rock Lima", venue_id=venues[0].id, artist="Varios artistas",
                  category="concert", start_date=start + timedelta(days=30),
                  price_from=Decimal("120.00"), price_to=Decimal("450.00"), duration="5 horas",
                  age_restriction="+18", rating=Decimal("4.7"), status="active"),
            Event(title="La Casa de Bernarda Alba", venue_id=venues[1].id, artist="Elenco Nacional",
                  category="theater", start_date=start + timedelta(days=12),
                  price_from=Decimal("60.00"), price_to=Decimal("180.00"), duration="2 horas",
                  rating=Decimal("4.5"), status="active"),
            Event(title="Clásico del Sur", venue_id=venues[2].id, category="sports",
                  start_date=start + timedelta(days=20), price_from=Decimal("40.00"),
                  price_to=Decimal("150.00"), status="active"),
        ]
        db.add_all(events)
        db.flush()

        seat_count = 0
        seat_count += create_seats(db, events[0], [
            ("VIP", 2, 10, Decimal("450.00"), "vip"),
            ("General", 5, 20, Decimal("120.00"), "general"),
        ])
        seat_count += create_seats(db, events[1], [
            ("Platea", 4, 12, Decimal("180.00"), "platea"),
            ("Preferencial", 3, 12, Decimal("60.00"), "preferencial"),
        ])

        # 4. Transport companies and routes
        print("Creating transport companies and routes...")
        companies = [
            TransportCompany(name="Cruz del Sur", rating=Decimal("4.6"), phone="+51 1 311 5050",
                             website="https://www.cruzdelsur.com.pe"),
            TransportCompany(name="PeruRail", rating=Decimal("4.8"), phone="+51 84 581414",
                             website="https://www.perurail.com"),
        ]
        db.add_all(companies)
        db.flush()

        departure = datetime.now().replace(hour=8, minute=0, second=0, microsecond=0) + timedelta(days=7)
        routes = [
            TransportRoute(company_id=companies[0].id, origin="Lima", destination="Arequipa", vehicle_type="bus",
                           departure_time=departure, arrival_time=departure + timedelta(hours=16),
                           duration=Decimal("16"), distance_km=Decimal("1010"), price_from=Decimal("90.00"),
                           price_to=Decimal("180.00"), total_seats=40, available_seats=40,
                           amenities=["wifi", "toilet", "meals"], status="active"),
            TransportRoute(company_id=companies[0].id, origin="Lima", destination="Trujillo", vehicle_type="bus",
                           departure_time=departure + timedelta(hours=13), arrival_time=departure + timedelta(hours=22),
                           duration=Decimal("9"), distance_km=Decimal("560"), price_from=Decimal("60.00"),
                           price_to=Decimal("130.00"), total_seats=45, available_seats=45,
                           amenities=["wifi", "toilet"], status="active"),
            TransportRoute(company_id=companies[1].id, origin="Cusco", destination="Machu Picchu", vehicle_type="train",
                           departure_time=departure, arrival_time=departure + timedelta(hours=3, minutes=30),
                           duration=Decimal("3.5"), distance_km=Decimal("110"), price_from=Decimal("250.00"),
                           price_to=Decimal("600.00"), total_seats=60, available_seats=60,
                           amenities=["snacks", "panoramic windows"], status="active"),
        ]
        db.add_all(routes)

        # Commit all changes
        db.commit()
        print("✅ Successfully created seed data!")
        print("Created:")
        print(f"  - {account_count} accounts (admin: {ADMIN_EMAIL})")
        print(f"  - {len(venues)} venues")
        print(f"  - {len(events)} events with {seat_count} seats")
        print(f"  - {len(companies)} transport companies")
        print(f"  - {len(routes)} transport routes")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
