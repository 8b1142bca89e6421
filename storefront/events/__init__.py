"""
Events Module

Public event catalogue (filters, search, pagination), event detail with seat
map, and admin event management. Seats are generated from a section layout
when an event is created and their status is updated as customers select and
book them.
"""

from .router import router
from .service import EventService

__all__ = ["router", "EventService"]
