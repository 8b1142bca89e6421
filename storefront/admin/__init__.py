"""
Admin Module

Statistics, dashboard figures, booking search for staff and cache
maintenance endpoints.
"""

from .router import router
from .service import AdminService, growth_rate

__all__ = ["router", "AdminService", "growth_rate"]
