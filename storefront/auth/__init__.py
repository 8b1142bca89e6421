"""
Authentication Module

Account registration, password login with JWT bearer tokens, and the
role-checking dependencies used to gate admin and operator endpoints.
"""

from .router import router
from .service import UserService
from .dependencies import get_current_user, require_roles, require_admin, require_staff

__all__ = [
    "router",
    "UserService",
    "get_current_user",
    "require_roles",
    "require_admin",
    "require_staff",
]
