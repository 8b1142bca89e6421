import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.auth.dependencies import require_admin, require_staff
from storefront.admin.service import AdminService
from storefront.cache import cache
from storefront.utils import page_info

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/stats")
def get_stats(
    period: int = Query(30, ge=1, le=365, description="Period in days"),
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get storefront statistics for the admin panel"""
    try:
        return AdminService.get_stats(db, period=period)
    except Exception:
        logger.exception("Error computing admin stats")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching statistics"
        )

@router.get("/dashboard")
def get_dashboard(
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Get dashboard figures (admin/operator)"""
    try:
        return AdminService.get_dashboard(db)
    except Exception:
        logger.exception("Error computing dashboard")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching dashboard"
        )

@router.get("/bookings")
def get_all_bookings(
    search: Optional[str] = Query(None, description="Booking reference"),
    booking_type: Optional[str] = Query(None, alias="type", description="event, transport or 'all'"),
    status_filter: Optional[str] = Query(None, alias="status", description="Booking status or 'all'"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Search all bookings (admin/operator)"""
    try:
        bookings, total = AdminService.search_bookings(
            db,
            search=search,
            booking_type=booking_type,
            status=status_filter,
            skip=offset,
            limit=limit
        )
    except Exception:
        logger.exception("Error searching bookings")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching bookings"
        )

    return {"bookings": bookings, **page_info(total, offset, limit)}

@router.get("/cache")
def get_cache_stats(admin_user = Depends(require_admin)):
    """Get cache entry counts (admin)"""
    return {"cache": cache.stats(), "ttl_seconds": cache.default_ttl}

@router.delete("/cache")
def clear_cache(admin_user = Depends(require_admin)):
    """Drop every cached entry (admin)"""
    cleared = cache.clear()
    logger.info(f"Cache cleared: {cleared} entries")
    return {"message": "Cache cleared successfully", "cleared_entries": cleared}
