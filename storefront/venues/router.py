import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.auth.dependencies import require_admin
from storefront.venues.schemas import VenueCreate, VenueUpdate
from storefront.venues.service import VenueService, serialize_venue

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/")
def get_venues(db: Session = Depends(get_db)):
    """Get all venues"""
    try:
        venues = VenueService.list_venues(db)
    except Exception:
        logger.exception("Error fetching venues")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching venues"
        )
    return {"venues": venues, "total": len(venues)}

@router.get("/{venue_id}")
def get_venue(venue_id: str, db: Session = Depends(get_db)):
    """Get venue details by ID"""
    venue = VenueService.get_venue(db, venue_id)
    if not venue:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return {"venue": serialize_venue(venue, include_seating_map=True)}

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_venue(
    venue_data: VenueCreate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a venue (admin)"""
    venue = VenueService.create_venue(db, venue_data)
    return {"message": "Venue created successfully", "venue": serialize_venue(venue, include_seating_map=True)}

@router.put("/{venue_id}")
def update_venue(
    venue_id: str,
    venue_data: VenueUpdate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update a venue (admin)"""
    try:
        venue = VenueService.update_venue(db, venue_id, venue_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not venue:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return {"message": "Venue updated successfully", "venue": serialize_venue(venue, include_seating_map=True)}

@router.delete("/{venue_id}")
def delete_venue(
    venue_id: str,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a venue (admin)"""
    try:
        deleted = VenueService.delete_venue(db, venue_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return {"message": "Venue deleted successfully"}
