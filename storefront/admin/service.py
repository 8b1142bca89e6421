import logging
from collections import OrderedDict
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from storefront.cache import cache
from storefront.models import Profile, Event, TransportRoute, Booking, utcnow
from storefront.utils import as_float, as_iso

logger = logging.getLogger(__name__)

REVENUE_STATUSES = ("confirmed", "completed")

def growth_rate(current: int, previous: int) -> float:
    """Percent change between two windows, one decimal"""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)

def _route_label(route: Optional[TransportRoute]) -> Optional[str]:
    return f"{route.origin} - {route.destination}" if route else None

class AdminService:
    @staticmethod
    def _recent_bookings(db: Session, limit: int = 10, since=None, status: Optional[str] = None) -> List[dict]:
        query = db.query(Booking).options(
            joinedload(Booking.event),
            joinedload(Booking.route),
            joinedload(Booking.profile)
        )
        if since is not None:
            query = query.filter(Booking.created_at >= since)
        if status:
            query = query.filter(Booking.status == status)

        bookings = query.order_by(Booking.created_at.desc()).limit(limit).all()
        return [
            {
                "id": booking.id,
                "booking_reference": booking.booking_reference,
                "booking_type": booking.booking_type,
                "status": booking.status,
                "total_amount": as_float(booking.total_amount),
                "created_at": as_iso(booking.created_at),
                "events": {"title": booking.event.title} if booking.event else None,
                "transport_routes": {
                    "origin": booking.route.origin,
                    "destination": booking.route.destination
                } if booking.route else None,
                "profiles": {"full_name": booking.profile.full_name} if booking.profile else None
            }
            for booking in bookings
        ]

    @staticmethod
    def _daily_stats(db: Session, days: int = 30) -> "OrderedDict[str, dict]":
        since = utcnow() - timedelta(days=days)
        rows = db.query(Booking.created_at, Booking.total_amount).filter(
            Booking.created_at >= since
        ).order_by(Booking.created_at.asc()).all()

        daily = OrderedDict()
        for created_at, total_amount in rows:
            day = created_at.date().isoformat()
            entry = daily.setdefault(day, {"bookings": 0, "revenue": 0.0})
            entry["bookings"] += 1
            entry["revenue"] += as_float(total_amount) or 0.0
        return daily

    @staticmethod
    def _top_events(db: Session, limit: int = 5) -> List[dict]:
        booking_count = func.count(Booking.id).label("bookings")
        rows = db.query(Event, booking_count).join(
            Booking, Booking.event_id == Event.id
        ).filter(
            Event.status == "active",
            Booking.status != "cancelled"
        ).group_by(Event.id).order_by(booking_count.desc()).limit(limit).all()

        return [
            {
                "id": event.id,
                "title": event.title,
                "image_url": event.image_url,
                "start_date": as_iso(event.start_date),
                "bookings": count
            }
            for event, count in rows
        ]

    @staticmethod
    def get_stats(db: Session, period: int = 30) -> dict:
        """Storefront statistics over the last `period` days, cached per period"""
        cache_key = cache.ADMIN_STATS_KEY.format(period=period)
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        start_date = utcnow() - timedelta(days=period)

        revenue = db.query(func.coalesce(func.sum(Booking.total_amount), 0)).filter(
            Booking.status == "confirmed",
            Booking.created_at >= start_date
        ).scalar()

        category_rows = db.query(Event.category, func.count(Event.id)).filter(
            Event.status == "active"
        ).group_by(Event.category).all()

        stats = {
            "overview": {
                "totalUsers": db.query(Profile).count(),
                "totalEvents": db.query(Event).count(),
                "totalBookings": db.query(Booking).filter(Booking.created_at >= start_date).count(),
                "totalRevenue": as_float(revenue) or 0.0,
                "activeEvents": db.query(Event).filter(Event.status == "active").count(),
                "pendingBookings": db.query(Booking).filter(Booking.status == "pending").count()
            },
            "categoryStats": {category: count for category, count in category_rows},
            "dailyStats": AdminService._daily_stats(db),
            "recentBookings": AdminService._recent_bookings(db),
            "topEvents": AdminService._top_events(db),
            "period": period
        }

        cache.set(cache_key, stats)
        return stats

    @staticmethod
    def get_dashboard(db: Session) -> dict:
        """Headline figures for the admin/operator dashboard"""
        now = utcnow()
        last_30 = now - timedelta(days=30)
        last_60 = now - timedelta(days=60)

        revenue, tickets_sold = db.query(
            func.coalesce(func.sum(Booking.total_amount), 0),
            func.coalesce(func.sum(Booking.tickets_quantity), 0)
        ).filter(Booking.status.in_(REVENUE_STATUSES)).one()

        current_window = db.query(Booking).filter(Booking.created_at >= last_30).count()
        previous_window = db.query(Booking).filter(
            Booking.created_at >= last_60,
            Booking.created_at < last_30
        ).count()

        booking_count = func.count(Booking.id).label("bookings")
        popular_event = db.query(Event, booking_count).join(
            Booking, Booking.event_id == Event.id
        ).filter(Booking.status != "cancelled").group_by(Event.id).order_by(booking_count.desc()).first()

        popular_route = db.query(TransportRoute, booking_count).join(
            Booking, Booking.route_id == TransportRoute.id
        ).filter(Booking.status != "cancelled").group_by(TransportRoute.id).order_by(booking_count.desc()).first()

        return {
            "totalRevenue": as_float(revenue) or 0.0,
            "ticketsSold": int(tickets_sold or 0),
            "activeEvents": db.query(Event).filter(Event.status == "active").count(),
            "activeRoutes": db.query(TransportRoute).filter(TransportRoute.status == "active").count(),
            "totalBookings": db.query(Booking).count(),
            "totalUsers": db.query(Profile).count(),
            "monthlyGrowth": growth_rate(current_window, previous_window),
            "popularEvent": {
                "id": popular_event[0].id,
                "title": popular_event[0].title,
                "bookings": popular_event[1]
            } if popular_event else None,
            "popularRoute": {
                "id": popular_route[0].id,
                "route": _route_label(popular_route[0]),
                "bookings": popular_route[1]
            } if popular_route else None,
            "recentBookings": AdminService._recent_bookings(db, since=last_30, status="confirmed")
        }

    @staticmethod
    def search_bookings(
        db: Session,
        search: Optional[str] = None,
        booking_type: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[dict], int]:
        """All bookings for staff, newest first"""
        query = db.query(Booking).options(
            joinedload(Booking.profile),
            joinedload(Booking.event),
            joinedload(Booking.route)
        )

        if search:
            query = query.filter(Booking.booking_reference.ilike(f"%{search}%"))

        if booking_type and booking_type != "all":
            query = query.filter(Booking.booking_type == booking_type)

        if status and status != "all":
            query = query.filter(Booking.status == status)

        total = query.count()
        bookings = query.order_by(Booking.created_at.desc()).offset(skip).limit(limit).all()

        return [
            {
                "id": booking.id,
                "booking_reference": booking.booking_reference,
                "booking_type": booking.booking_type,
                "status": booking.status,
                "payment_status": booking.payment_status,
                "total_amount": as_float(booking.total_amount),
                "tickets_quantity": booking.tickets_quantity,
                "created_at": as_iso(booking.created_at),
                "user_name": booking.profile.full_name if booking.profile else None,
                "user_email": booking.profile.email if booking.profile else None,
                "event_title": booking.event.title if booking.event else None,
                "route": _route_label(booking.route)
            }
            for booking in bookings
        ], total
