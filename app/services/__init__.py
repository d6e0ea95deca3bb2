"""Service layer: business rules per entity plus the background status scheduler."""

from .attendees import AttendeeService
from .categories import CategoryService
from .events import EventService
from .scheduler import EventScheduler

__all__ = [
    "AttendeeService",
    "CategoryService",
    "EventScheduler",
    "EventService",
]
