from __future__ import annotations

import logging
from typing import Literal, Optional

from app.errors import ServiceError, repository_failures
from app.repositories import EventRepository
from app.schemas import EventCreate, EventRead, EventStatus, EventUpdate
from app.utils import Clock, SortOrder, sort_records, utcnow

_LOGGER = logging.getLogger(__name__)

EventSortField = Literal["date", "name", "capacity"]


class EventService:
    """Business rules for events: defaults, capacity and date invariants, sorting."""

    def __init__(self, repository: EventRepository, *, clock: Clock = utcnow) -> None:
        self._repository = repository
        self._clock = clock

    async def list_events(
        self,
        *,
        status: Optional[EventStatus] = None,
        location: Optional[str] = None,
        sort_by: Optional[EventSortField] = None,
        order: SortOrder = "asc",
    ) -> list[EventRead]:
        with repository_failures("Failed to retrieve events"):
            events = await self._repository.find_all({"status": status, "location": location})
        if sort_by:
            events = sort_records(events, sort_by, order)
        return events

    async def get_event(self, event_id: str) -> Optional[EventRead]:
        with repository_failures(f"Failed to retrieve event with id {event_id}"):
            return await self._repository.find_by_id(event_id)

    def _check_capacity(self, capacity: Optional[int]) -> None:
        if capacity is not None and capacity < 1:
            raise ServiceError("Event capacity must be at least 1")

    def _check_future(self, payload_date) -> None:
        if payload_date <= self._clock():
            raise ServiceError("Event date must be in the future")

    async def create_event(self, payload: EventCreate) -> EventRead:
        self._check_capacity(payload.capacity)
        self._check_future(payload.date)

        data = {
            "name": payload.name,
            "description": payload.description or "",
            "date": payload.date,
            "location": payload.location,
            "capacity": payload.capacity or 0,
            "status": payload.status or EventStatus.upcoming,
        }
        with repository_failures("Failed to create event"):
            event = await self._repository.create(data)
        _LOGGER.info("Created event %s (%s)", event.id, event.name)
        return event

    async def update_event(self, event_id: str, payload: EventUpdate) -> Optional[EventRead]:
        """Apply the fields present in ``payload``; ``None`` if the event is unknown."""

        changes = payload.changes()
        if "capacity" in changes:
            self._check_capacity(changes["capacity"])
        if "date" in changes:
            self._check_future(changes["date"])

        with repository_failures(f"Failed to update event with id {event_id}"):
            return await self._repository.update(event_id, changes)

    async def delete_event(self, event_id: str) -> bool:
        with repository_failures(f"Failed to delete event with id {event_id}"):
            return await self._repository.delete(event_id)
