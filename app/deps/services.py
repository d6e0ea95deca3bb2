"""Request-scoped wiring of store -> repository -> service."""

from fastapi import Depends, Request

from app.repositories import AttendeeRepository, CategoryRepository, EventRepository
from app.services.attendees import AttendeeService
from app.services.categories import CategoryService
from app.services.events import EventService
from app.services.scheduler import EventScheduler
from app.store import DocumentStore
from app.utils import Clock


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_event_service(
    store: DocumentStore = Depends(get_store), clock: Clock = Depends(get_clock)
) -> EventService:
    return EventService(EventRepository(store, clock=clock), clock=clock)


def get_category_service(
    store: DocumentStore = Depends(get_store), clock: Clock = Depends(get_clock)
) -> CategoryService:
    return CategoryService(CategoryRepository(store, clock=clock))


def get_attendee_service(
    store: DocumentStore = Depends(get_store), clock: Clock = Depends(get_clock)
) -> AttendeeService:
    return AttendeeService(AttendeeRepository(store, clock=clock))


def get_scheduler(request: Request) -> EventScheduler:
    return request.app.state.scheduler
