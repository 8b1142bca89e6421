"""
Administrator management of user accounts and their roles.
"""

from .router import router
from .service import UserAdminService

__all__ = ["router", "UserAdminService"]
