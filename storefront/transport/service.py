import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from storefront.cache import cache
from storefront.models import TransportCompany, TransportRoute, Booking
from storefront.transport.schemas import (
    CompanyCreate, CompanyUpdate, RouteCreate, RouteUpdate, VehicleType, RouteStatus
)
from storefront.utils import as_float, as_iso, plain_values, reject_nulls

logger = logging.getLogger(__name__)

VEHICLE_TYPES = [v.value for v in VehicleType]
ROUTE_STATUSES = [s.value for s in RouteStatus]
ROUTE_REQUIRED_FIELDS = (
    "company_id", "origin", "destination", "vehicle_type",
    "departure_time", "arrival_time", "total_seats", "status"
)

def serialize_company(company: TransportCompany, detailed: bool = True) -> dict:
    data = {
        "id": company.id,
        "name": company.name,
        "logo_url": company.logo_url,
        "rating": as_float(company.rating),
        "phone": company.phone,
        "email": company.email
    }
    if detailed:
        data.update({
            "description": company.description,
            "website": company.website,
            "created_at": as_iso(company.created_at)
        })
    return data

def serialize_route(route: TransportRoute, include_company: bool = True) -> dict:
    data = {
        "id": route.id,
        "company_id": route.company_id,
        "origin": route.origin,
        "destination": route.destination,
        "vehicle_type": route.vehicle_type,
        "departure_time": as_iso(route.departure_time),
        "arrival_time": as_iso(route.arrival_time),
        "duration": as_float(route.duration),
        "distance_km": as_float(route.distance_km),
        "price_from": as_float(route.price_from),
        "price_to": as_float(route.price_to),
        "total_seats": route.total_seats,
        "available_seats": route.available_seats,
        "amenities": route.amenities or [],
        "image_url": route.image_url,
        "status": route.status,
        "created_at": as_iso(route.created_at),
        "updated_at": as_iso(route.updated_at)
    }
    if include_company:
        data["transport_companies"] = serialize_company(route.company, detailed=False) if route.company else None
    return data

class CompanyService:
    @staticmethod
    def list_companies(db: Session) -> List[dict]:
        """Companies ordered by name with route counts, served from cache when fresh"""
        cached = cache.get(cache.COMPANIES_KEY)
        if cached is not None:
            return cached

        route_counts = dict(
            db.query(TransportRoute.company_id, func.count(TransportRoute.id))
            .group_by(TransportRoute.company_id).all()
        )
        companies = db.query(TransportCompany).order_by(TransportCompany.name.asc()).all()
        result = []
        for company in companies:
            data = serialize_company(company)
            data["total_routes"] = route_counts.get(company.id, 0)
            result.append(data)

        cache.set(cache.COMPANIES_KEY, result)
        return result

    @staticmethod
    def get_company(db: Session, company_id: str) -> Optional[TransportCompany]:
        return db.query(TransportCompany).filter(TransportCompany.id == company_id).first()

    @staticmethod
    def create_company(db: Session, company_data: CompanyCreate) -> TransportCompany:
        company = TransportCompany(**company_data.model_dump())
        db.add(company)
        db.commit()
        db.refresh(company)
        cache.delete(cache.COMPANIES_KEY)
        logger.info(f"Transport company created: {company.name}", extra={"company_id": company.id})
        return company

    @staticmethod
    def update_company(db: Session, company_id: str, company_data: CompanyUpdate) -> Optional[TransportCompany]:
        company = CompanyService.get_company(db, company_id)
        if not company:
            return None

        update_data = company_data.model_dump(exclude_unset=True)
        reject_nulls(update_data, ("name",))

        for field, value in update_data.items():
            setattr(company, field, value)

        db.commit()
        db.refresh(company)
        cache.delete(cache.COMPANIES_KEY)
        return company

    @staticmethod
    def delete_company(db: Session, company_id: str) -> bool:
        company = CompanyService.get_company(db, company_id)
        if not company:
            return False

        route_count = db.query(TransportRoute).filter(TransportRoute.company_id == company_id).count()
        if route_count > 0:
            raise ValueError(f"Cannot delete company with {route_count} routes")

        db.delete(company)
        db.commit()
        cache.delete(cache.COMPANIES_KEY)
        return True

class TransportRouteService:
    @staticmethod
    def search_routes(
        db: Session,
        skip: int = 0,
        limit: int = 20,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        travel_date: Optional[date] = None,
        passengers: int = 1,
        company: Optional[str] = None
    ) -> Tuple[List[TransportRoute], int]:
        """Bookable routes with enough free seats for the party"""
        query = db.query(TransportRoute).options(joinedload(TransportRoute.company)).filter(
            TransportRoute.status == RouteStatus.ACTIVE.value,
            TransportRoute.available_seats >= passengers
        )

        if origin:
            query = query.filter(TransportRoute.origin.ilike(f"%{origin}%"))

        if destination:
            query = query.filter(TransportRoute.destination.ilike(f"%{destination}%"))

        if travel_date:
            day_start = datetime.combine(travel_date, time.min)
            query = query.filter(
                TransportRoute.departure_time >= day_start,
                TransportRoute.departure_time < day_start + timedelta(days=1)
            )

        if company:
            query = query.filter(TransportRoute.company.has(TransportCompany.name == company))

        total = query.count()
        routes = query.order_by(TransportRoute.departure_time.asc()).offset(skip).limit(limit).all()

        return routes, total

    @staticmethod
    def list_admin_routes(db: Session, status: str = "active") -> List[TransportRoute]:
        query = db.query(TransportRoute).options(joinedload(TransportRoute.company))
        if status != "all":
            query = query.filter(TransportRoute.status == status)
        return query.order_by(TransportRoute.created_at.desc()).all()

    @staticmethod
    def get_route(db: Session, route_id: str) -> Optional[TransportRoute]:
        return db.query(TransportRoute).options(
            joinedload(TransportRoute.company)
        ).filter(TransportRoute.id == route_id).first()

    @staticmethod
    def count_active_bookings(db: Session, route_id: str) -> int:
        """Bookings referencing the route that are not cancelled"""
        return db.query(Booking).filter(
            Booking.route_id == route_id,
            Booking.status != "cancelled"
        ).count()

    @staticmethod
    def _validate_vehicle_type(vehicle_type: str):
        if vehicle_type not in VEHICLE_TYPES:
            raise ValueError("Invalid vehicle type")

    @staticmethod
    def create_route(db: Session, route_data: RouteCreate) -> TransportRoute:
        TransportRouteService._validate_vehicle_type(route_data.vehicle_type)

        if not CompanyService.get_company(db, route_data.company_id):
            raise ValueError(f"Transport company {route_data.company_id} not found")

        if route_data.arrival_time <= route_data.departure_time:
            raise ValueError("arrival_time must be after departure_time")

        route = TransportRoute(
            **plain_values(route_data.model_dump()),
            available_seats=route_data.total_seats
        )
        db.add(route)
        db.commit()
        db.refresh(route)
        cache.delete(cache.COMPANIES_KEY)
        logger.info(f"Transport route created: {route.origin} - {route.destination}", extra={"route_id": route.id})
        return route

    @staticmethod
    def update_route(db: Session, route_id: str, route_data: RouteUpdate) -> Optional[TransportRoute]:
        route = db.query(TransportRoute).filter(TransportRoute.id == route_id).first()
        if not route:
            return None

        update_data = plain_values(route_data.model_dump(exclude_unset=True))
        reject_nulls(update_data, ROUTE_REQUIRED_FIELDS)

        if "vehicle_type" in update_data:
            TransportRouteService._validate_vehicle_type(update_data["vehicle_type"])

        if "company_id" in update_data and not CompanyService.get_company(db, update_data["company_id"]):
            raise ValueError(f"Transport company {update_data['company_id']} not found")

        if "total_seats" in update_data:
            occupied = (route.total_seats or 0) - (route.available_seats or 0)
            new_total = update_data.pop("total_seats")
            if new_total < occupied:
                raise ValueError(f"total_seats cannot be lower than the {occupied} occupied seats")
            route.total_seats = new_total
            route.available_seats = new_total - occupied

        for field, value in update_data.items():
            setattr(route, field, value)

        db.commit()
        db.refresh(route)
        return route

    @staticmethod
    def update_route_status(db: Session, route_id: str, status: Optional[str]) -> Optional[TransportRoute]:
        if not status or status not in ROUTE_STATUSES:
            raise ValueError("Invalid status. Must be active or cancelled")

        route = db.query(TransportRoute).filter(TransportRoute.id == route_id).first()
        if not route:
            return None

        route.status = status
        db.commit()
        db.refresh(route)
        logger.info(f"Route status changed to {status}", extra={"route_id": route_id})
        return route

    @staticmethod
    def delete_route(db: Session, route_id: str) -> bool:
        """Delete a route unless bookings still reference it"""
        route = db.query(TransportRoute).filter(TransportRoute.id == route_id).first()
        if not route:
            return False

        if TransportRouteService.count_active_bookings(db, route_id) > 0:
            raise ValueError("Cannot delete route with active bookings")

        db.query(Booking).filter(Booking.route_id == route_id).update(
            {Booking.route_id: None}, synchronize_session=False
        )
        db.delete(route)
        db.commit()
        cache.delete(cache.COMPANIES_KEY)
        logger.info("Transport route deleted", extra={"route_id": route_id})
        return True

    @staticmethod
    def landing_routes(db: Session) -> List[dict]:
        """Active routes projected for the landing page cards"""
        routes = TransportRouteService.list_admin_routes(db, status=RouteStatus.ACTIVE.value)
        today = date.today().isoformat()
        return [
            {
                "id": route.id,
                "origin": route.origin,
                "destination": route.destination,
                "vehicle_type": route.vehicle_type,
                "company": route.company.name if route.company else "Transport company",
                "departure_time": as_iso(route.departure_time),
                "arrival_time": as_iso(route.arrival_time),
                "duration_hours": as_float(route.duration) or 0,
                "distance_km": as_float(route.distance_km) or 0,
                "price_range": {
                    "min": as_float(route.price_from) or 0,
                    "max": as_float(route.price_to) or as_float(route.price_from) or 0
                },
                "date": today,
                "image_url": route.image_url,
                "status": route.status,
                "services": route.amenities or []
            }
            for route in routes
        ]
