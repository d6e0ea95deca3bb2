# app/routes/attendees.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from app.deps.security import STAFF_ROLES, require_roles, require_user
from app.deps.services import get_attendee_service
from app.errors import NotFoundError
from app.schemas import (
    ApiResponse,
    AttendeeCreate,
    AttendeeRead,
    AttendeeStatus,
    AttendeeUpdate,
)
from app.services.attendees import AttendeeService

router = APIRouter(tags=["Attendees"])

# Staff, or the attendee themself.
require_staff_or_self = require_roles(STAFF_ROLES, allow_same_user=True)

_SORT_FIELDS = {"name": "name", "registrationDate": "registration_date"}


def _not_found(attendee_id: str) -> NotFoundError:
    return NotFoundError(f"Attendee with id {attendee_id} not found")


@router.get(
    "/attendees",
    response_model=ApiResponse[List[AttendeeRead]],
    response_model_exclude_none=True,
)
async def list_attendees(
    event_id: Optional[str] = Query(default=None, alias="eventId"),
    status_filter: Optional[AttendeeStatus] = Query(default=None, alias="status"),
    sort_by: Optional[Literal["name", "registrationDate"]] = Query(default=None, alias="sortBy"),
    order: Literal["asc", "desc"] = Query(default="asc"),
    service: AttendeeService = Depends(get_attendee_service),
):
    attendees = await service.list_attendees(
        event_id=event_id,
        status=status_filter,
        sort_by=_SORT_FIELDS.get(sort_by) if sort_by else None,
        order=order,
    )
    return ApiResponse(message="Get all attendees", data=attendees, count=len(attendees))


@router.get(
    "/events/{event_id}/attendees",
    response_model=ApiResponse[List[AttendeeRead]],
    response_model_exclude_none=True,
)
async def list_event_attendees(
    event_id: str, service: AttendeeService = Depends(get_attendee_service)
):
    attendees = await service.list_for_event(event_id)
    return ApiResponse(
        message=f"Get all attendees for event {event_id}",
        data=attendees,
        count=len(attendees),
    )


@router.get(
    "/attendees/{id}",
    response_model=ApiResponse[AttendeeRead],
    response_model_exclude_none=True,
)
async def get_attendee(id: str, service: AttendeeService = Depends(get_attendee_service)):
    attendee = await service.get_attendee(id)
    if attendee is None:
        raise _not_found(id)
    return ApiResponse(message="Attendee found", data=attendee)


@router.post(
    "/attendees",
    response_model=ApiResponse[AttendeeRead],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_user)],
)
async def create_attendee(
    payload: AttendeeCreate, service: AttendeeService = Depends(get_attendee_service)
):
    attendee = await service.create_attendee(payload)
    return ApiResponse(message="Attendee created successfully", data=attendee)


@router.put(
    "/attendees/{id}",
    response_model=ApiResponse[AttendeeRead],
    response_model_exclude_none=True,
    dependencies=[Depends(require_staff_or_self)],
)
async def update_attendee(
    id: str,
    payload: AttendeeUpdate,
    service: AttendeeService = Depends(get_attendee_service),
):
    attendee = await service.update_attendee(id, payload)
    if attendee is None:
        raise _not_found(id)
    return ApiResponse(message="Attendee updated successfully", data=attendee)


@router.delete(
    "/attendees/{id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_staff_or_self)],
)
async def delete_attendee(id: str, service: AttendeeService = Depends(get_attendee_service)):
    if not await service.delete_attendee(id):
        raise _not_found(id)
    return ApiResponse(message="Attendee deleted successfully")
