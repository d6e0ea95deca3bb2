# app/routes/events.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from app.deps.security import require_staff
from app.deps.services import get_event_service
from app.errors import NotFoundError
from app.schemas import ApiResponse, EventCreate, EventRead, EventStatus, EventUpdate
from app.services.events import EventService

router = APIRouter(prefix="/events", tags=["Events"])


def _not_found(event_id: str) -> NotFoundError:
    return NotFoundError(f"Event with id {event_id} not found")


@router.get(
    "",
    response_model=ApiResponse[List[EventRead]],
    response_model_exclude_none=True,
)
async def list_events(
    status_filter: Optional[EventStatus] = Query(default=None, alias="status"),
    location: Optional[str] = Query(default=None),
    sort_by: Optional[Literal["date", "name", "capacity"]] = Query(default=None, alias="sortBy"),
    order: Literal["asc", "desc"] = Query(default="asc"),
    service: EventService = Depends(get_event_service),
):
    events = await service.list_events(
        status=status_filter, location=location, sort_by=sort_by, order=order
    )
    return ApiResponse(message="Get all events", data=events, count=len(events))


@router.get("/{id}", response_model=ApiResponse[EventRead], response_model_exclude_none=True)
async def get_event(id: str, service: EventService = Depends(get_event_service)):
    event = await service.get_event(id)
    if event is None:
        raise _not_found(id)
    return ApiResponse(message="Event found", data=event)


@router.post(
    "",
    response_model=ApiResponse[EventRead],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
async def create_event(payload: EventCreate, service: EventService = Depends(get_event_service)):
    event = await service.create_event(payload)
    return ApiResponse(message="Event created successfully", data=event)


@router.put(
    "/{id}",
    response_model=ApiResponse[EventRead],
    response_model_exclude_none=True,
    dependencies=[Depends(require_staff)],
)
async def update_event(
    id: str,
    payload: EventUpdate,
    service: EventService = Depends(get_event_service),
):
    event = await service.update_event(id, payload)
    if event is None:
        raise _not_found(id)
    return ApiResponse(message="Event updated successfully", data=event)


@router.delete(
    "/{id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_staff)],
)
async def delete_event(id: str, service: EventService = Depends(get_event_service)):
    if not await service.delete_event(id):
        raise _not_found(id)
    return ApiResponse(message="Event deleted successfully")
