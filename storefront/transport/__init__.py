"""
Transport companies and routes: public search, staff management and the landing page projection.
"""

from .router import router, landing_router
from .service import CompanyService, TransportRouteService

__all__ = ["router", "landing_router", "CompanyService", "TransportRouteService"]
