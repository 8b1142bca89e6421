import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.cache import cache
from storefront.models import Venue, Event
from storefront.venues.schemas import VenueCreate, VenueUpdate
from storefront.utils import as_iso, reject_nulls

logger = logging.getLogger(__name__)

def serialize_venue(venue: Venue, include_seating_map: bool = False) -> dict:
    data = {
        "id": venue.id,
        "name": venue.name,
        "address": venue.address,
        "city": venue.city,
        "capacity": venue.capacity
    }
    if include_seating_map:
        data["seating_map"] = venue.seating_map
    return data

class VenueService:
    @staticmethod
    def list_venues(db: Session) -> List[dict]:
        """All venues ordered by name, served from cache when fresh"""
        cached = cache.get(cache.VENUES_KEY)
        if cached is not None:
            return cached
        
        event_counts = dict(
            db.query(Event.venue_id, func.count(Event.id)).group_by(Event.venue_id).all()
        )
        venues = db.query(Venue).order_by(Venue.name).all()
        result = []
        for venue in venues:
            data = serialize_venue(venue)
            data["total_events"] = event_counts.get(venue.id, 0)
            data["created_at"] = as_iso(venue.created_at)
            result.append(data)
        
        cache.set(cache.VENUES_KEY, result)
        return result
    
    @staticmethod
    def get_venue(db: Session, venue_id: str) -> Optional[Venue]:
        return db.query(Venue).filter(Venue.id == venue_id).first()
    
    @staticmethod
    def create_venue(db: Session, venue_data: VenueCreate) -> Venue:
        venue = Venue(**venue_data.model_dump())
        db.add(venue)
        db.commit()
        db.refresh(venue)
        cache.delete(cache.VENUES_KEY)
        logger.info(f"Venue created: {venue.name}", extra={"venue_id": venue.id})
        return venue
    
    @staticmethod
    def update_venue(db: Session, venue_id: str, venue_data: VenueUpdate) -> Optional[Venue]:
        venue = VenueService.get_venue(db, venue_id)
        if not venue:
            return None
        
        update_data = venue_data.model_dump(exclude_unset=True)
        reject_nulls(update_data, ("name",))
        
        for field, value in update_data.items():
            setattr(venue, field, value)
        
        db.commit()
        db.refresh(venue)
        cache.delete(cache.VENUES_KEY)
        return venue
    
    @staticmethod
    def delete_venue(db: Session, venue_id: str) -> bool:
        """Delete a venue; venues still hosting events are kept"""
        venue = VenueService.get_venue(db, venue_id)
        if not venue:
            return False
        
        event_count = db.query(Event).filter(Event.venue_id == venue_id).count()
        if event_count > 0:
            raise ValueError(f"Cannot delete venue with {event_count} events")
        
        db.delete(venue)
        db.commit()
        cache.delete(cache.VENUES_KEY)
        logger.info("Venue deleted", extra={"venue_id": venue_id})
        return True
