from __future__ import annotations

import logging
import re
from typing import Literal, Optional

from app.errors import ServiceError, repository_failures
from app.repositories import AttendeeRepository
from app.schemas import AttendeeCreate, AttendeeRead, AttendeeStatus, AttendeeUpdate
from app.utils import SortOrder, sort_records

_LOGGER = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

AttendeeSortField = Literal["name", "registration_date"]


def _check_email(email: str) -> None:
    # Second check behind the schema's EmailStr.
    if not EMAIL_RE.match(email):
        raise ServiceError("Invalid email format")


class AttendeeService:
    def __init__(self, repository: AttendeeRepository) -> None:
        self._repository = repository

    async def list_attendees(
        self,
        *,
        event_id: Optional[str] = None,
        status: Optional[AttendeeStatus] = None,
        sort_by: Optional[AttendeeSortField] = None,
        order: SortOrder = "asc",
    ) -> list[AttendeeRead]:
        with repository_failures("Failed to retrieve attendees"):
            attendees = await self._repository.find_all({"event_id": event_id, "status": status})
        if sort_by:
            attendees = sort_records(attendees, sort_by, order)
        return attendees

    async def list_for_event(self, event_id: str) -> list[AttendeeRead]:
        with repository_failures(f"Failed to retrieve attendees for event {event_id}"):
            return await self._repository.find_all({"event_id": event_id})

    async def get_attendee(self, attendee_id: str) -> Optional[AttendeeRead]:
        with repository_failures(f"Failed to retrieve attendee with id {attendee_id}"):
            return await self._repository.find_by_id(attendee_id)

    async def create_attendee(self, payload: AttendeeCreate) -> AttendeeRead:
        _check_email(payload.email)

        data = {
            "event_id": payload.event_id,
            "name": payload.name,
            "email": payload.email,
            "phone": payload.phone,
            "status": payload.status or AttendeeStatus.registered,
        }
        with repository_failures("Failed to create attendee"):
            attendee = await self._repository.create(data)
        _LOGGER.info("Registered attendee %s for event %s", attendee.id, attendee.event_id)
        return attendee

    async def update_attendee(
        self, attendee_id: str, payload: AttendeeUpdate
    ) -> Optional[AttendeeRead]:
        changes = payload.changes()
        if "email" in changes:
            _check_email(changes["email"])

        with repository_failures(f"Failed to update attendee with id {attendee_id}"):
            return await self._repository.update(attendee_id, changes)

    async def delete_attendee(self, attendee_id: str) -> bool:
        with repository_failures(f"Failed to delete attendee with id {attendee_id}"):
            return await self._repository.delete(attendee_id)
