from .router import router
from .service import VenueService

__all__ = ["router", "VenueService"]
