import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.auth.dependencies import require_admin, require_staff
from storefront.transport.schemas import (
    CompanyCreate, CompanyUpdate, RouteCreate, RouteUpdate, RouteStatusUpdate
)
from storefront.transport.service import (
    CompanyService, TransportRouteService, serialize_company, serialize_route
)
from storefront.utils import page_info

logger = logging.getLogger(__name__)

router = APIRouter()
landing_router = APIRouter()

# Company endpoints
@router.get("/companies")
def get_companies(db: Session = Depends(get_db)):
    """Get all transport companies"""
    try:
        companies = CompanyService.list_companies(db)
    except Exception:
        logger.exception("Error fetching transport companies")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching transport companies"
        )
    return {"companies": companies, "total": len(companies)}

@router.post("/companies", status_code=status.HTTP_201_CREATED)
def create_company(
    company_data: CompanyCreate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a transport company (admin)"""
    company = CompanyService.create_company(db, company_data)
    return {"message": "Company created successfully", "company": serialize_company(company)}

@router.put("/companies/{company_id}")
def update_company(
    company_id: str,
    company_data: CompanyUpdate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update a transport company (admin)"""
    try:
        company = CompanyService.update_company(db, company_id, company_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return {"message": "Company updated successfully", "company": serialize_company(company)}

@router.delete("/companies/{company_id}")
def delete_company(
    company_id: str,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a transport company without routes (admin)"""
    try:
        deleted = CompanyService.delete_company(db, company_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return {"message": "Company deleted successfully"}

# Public route search
@router.get("/routes")
def search_routes(
    origin: Optional[str] = Query(None, description="Origin city"),
    destination: Optional[str] = Query(None, description="Destination city"),
    travel_date: Optional[date] = Query(None, alias="date", description="Departure date"),
    passengers: int = Query(1, ge=1, description="Seats needed"),
    company: Optional[str] = Query(None, description="Company name"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Search active transport routes"""
    try:
        routes, total = TransportRouteService.search_routes(
            db,
            skip=offset,
            limit=limit,
            origin=origin,
            destination=destination,
            travel_date=travel_date,
            passengers=passengers,
            company=company
        )
    except Exception:
        logger.exception("Error searching transport routes")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error searching routes"
        )

    return {
        "routes": [serialize_route(route) for route in routes],
        **page_info(total, offset, limit),
        "filters": {
            "origin": origin,
            "destination": destination,
            "date": travel_date.isoformat() if travel_date else None,
            "passengers": passengers,
            "company": company
        }
    }

# Staff route management
@router.get("/admin-routes")
def get_admin_routes(
    status_filter: str = Query("active", alias="status", description="Route status or 'all'"),
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """List routes with seat occupancy (admin/operator)"""
    try:
        routes = TransportRouteService.list_admin_routes(db, status=status_filter)
    except Exception:
        logger.exception("Error fetching admin routes")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching routes"
        )

    formatted = []
    for route in routes:
        data = serialize_route(route)
        data["occupied_seats"] = (route.total_seats or 0) - (route.available_seats or 0)
        formatted.append(data)

    return {"routes": formatted, "total": len(formatted)}

@router.get("/admin-routes/{route_id}")
def get_admin_route(
    route_id: str,
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Get route details with active booking count (admin/operator)"""
    route = TransportRouteService.get_route(db, route_id)
    if not route:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Route not found")

    return {
        "route": serialize_route(route),
        "bookings_count": TransportRouteService.count_active_bookings(db, route_id)
    }

@router.post("/admin-routes", status_code=status.HTTP_201_CREATED)
def create_route(
    route_data: RouteCreate,
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Create a transport route (admin/operator)"""
    try:
        route = TransportRouteService.create_route(db, route_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception("Error creating route")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating route"
        )

    route = TransportRouteService.get_route(db, route.id)
    return {"message": "Route created successfully", "route": serialize_route(route)}

@router.put("/admin-routes/{route_id}")
def update_route(
    route_id: str,
    route_data: RouteUpdate,
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Update a transport route (admin/operator)"""
    try:
        route = TransportRouteService.update_route(db, route_id, route_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not route:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Route not found")
    return {"message": "Route updated successfully", "route": serialize_route(route)}

@router.patch("/admin-routes/{route_id}")
def update_route_status(
    route_id: str,
    status_update: RouteStatusUpdate,
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Activate or cancel a transport route (admin/operator)"""
    try:
        route = TransportRouteService.update_route_status(db, route_id, status_update.status)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not route:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Route not found")
    return {
        "message": "Route status updated successfully",
        "route": {
            "id": route.id,
            "origin": route.origin,
            "destination": route.destination,
            "status": route.status
        }
    }

@router.delete("/admin-routes/{route_id}")
def delete_route(
    route_id: str,
    staff_user = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Delete a transport route without active bookings (admin/operator)"""
    try:
        deleted = TransportRouteService.delete_route(db, route_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Route not found")
    return {"message": "Route deleted successfully"}

@landing_router.get("/")
def get_landing_routes(db: Session = Depends(get_db)):
    """Active routes for the landing page; an empty list when the lookup fails"""
    try:
        return TransportRouteService.landing_routes(db)
    except Exception:
        logger.exception("Error fetching landing routes")
        return []
