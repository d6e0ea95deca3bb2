"""Repositories translating entity operations into document store calls."""

from .attendees import ATTENDEES_COLLECTION, AttendeeRepository
from .base import DocumentRepository
from .categories import CATEGORIES_COLLECTION, CategoryRepository
from .events import EVENTS_COLLECTION, EventRepository

__all__ = [
    "ATTENDEES_COLLECTION",
    "CATEGORIES_COLLECTION",
    "EVENTS_COLLECTION",
    "AttendeeRepository",
    "CategoryRepository",
    "DocumentRepository",
    "EventRepository",
]
