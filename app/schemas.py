# app/schemas.py
# ------------------------------------------------------------
# Pydantic v2 schemas, organized by resource
# ------------------------------------------------------------
from __future__ import annotations

import enum
import re
from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_SCRIPT_TAG_RE = re.compile(r"<\s*/?\s*script", re.IGNORECASE)

PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"
ISO_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def _sanitize_single_line_text(value: Any, *, allow_empty: bool = False) -> Any:
    if value is None:
        return value
    if not isinstance(value, str):
        raise ValueError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not allow_empty and not cleaned:
        raise ValueError("Value cannot be empty")
    if any(ch in {"\n", "\r"} for ch in cleaned):
        raise ValueError("Value must be a single line of text")
    if "<" in cleaned or ">" in cleaned:
        raise ValueError("HTML tags are not allowed in this field")
    return cleaned


def _sanitize_multiline_text(value: Any, *, allow_empty: bool = False) -> Any:
    if value is None:
        return value
    if not isinstance(value, str):
        raise ValueError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not allow_empty and not cleaned:
        raise ValueError("Value cannot be empty")
    if _SCRIPT_TAG_RE.search(cleaned):
        raise ValueError("Script tags are not allowed")
    return cleaned


def _require_iso_datetime(value: Any) -> Any:
    # pydantic would otherwise take numbers and numeric strings as Unix timestamps.
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not ISO_DATE_PREFIX_RE.match(value.strip()):
        raise ValueError("must be a valid ISO 8601 date-time")
    return value.strip()


def _ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    # Offset-less timestamps are taken as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case on input and emits camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartialUpdateModel(CamelModel):
    """Update payloads: at least one recognized field, and no explicit nulls."""

    @model_validator(mode="before")
    @classmethod
    def _require_one_field(cls, data: Any) -> Any:
        if isinstance(data, dict):
            known = set()
            for name, info in cls.model_fields.items():
                known.add(name)
                if info.alias:
                    known.add(info.alias)
            if not known.intersection(data):
                raise ValueError("At least one field must be provided for update")
        return data

    @model_validator(mode="after")
    def _reject_nulls(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    count: Optional[int] = None
    errors: Optional[List[str]] = None


# ============================================================
# Events
# ============================================================

class EventStatus(str, enum.Enum):
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"


class EventCreate(CamelModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    date: datetime
    location: str = Field(min_length=3, max_length=200)
    capacity: Optional[int] = Field(default=None, ge=1)
    status: Optional[EventStatus] = None

    @field_validator("name", "location", mode="before")
    @classmethod
    def _clean_line(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Any) -> Any:
        return _sanitize_multiline_text(value, allow_empty=True)

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, value: Any) -> Any:
        return _require_iso_datetime(value)

    @field_validator("date")
    @classmethod
    def _aware_date(cls, value: datetime) -> datetime:
        return _ensure_aware(value)


class EventUpdate(PartialUpdateModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, min_length=3, max_length=200)
    capacity: Optional[int] = Field(default=None, ge=1)
    status: Optional[EventStatus] = None

    @field_validator("name", "location", mode="before")
    @classmethod
    def _clean_line(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Any) -> Any:
        return _sanitize_multiline_text(value, allow_empty=True)

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, value: Any) -> Any:
        return _require_iso_datetime(value)

    @field_validator("date")
    @classmethod
    def _aware_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _ensure_aware(value)


class EventRead(CamelModel):
    id: str
    name: str
    description: str = ""
    date: datetime
    location: str
    capacity: int = 0
    status: EventStatus = EventStatus.upcoming
    created_at: datetime
    updated_at: datetime


# ============================================================
# Categories
# ============================================================

class CategoryCreate(CamelModel):
    name: str = Field(min_length=3, max_length=50)
    description: Optional[str] = Field(default=None, max_length=300)

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Any) -> Any:
        return _sanitize_multiline_text(value, allow_empty=True)


class CategoryUpdate(PartialUpdateModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=50)
    description: Optional[str] = Field(default=None, max_length=300)

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Any) -> Any:
        return _sanitize_multiline_text(value, allow_empty=True)


class CategoryRead(CamelModel):
    id: str
    name: str
    description: str = ""
    created_at: datetime
    updated_at: datetime


# ============================================================
# Attendees
# ============================================================

class AttendeeStatus(str, enum.Enum):
    registered = "registered"
    attended = "attended"
    cancelled = "cancelled"


class AttendeeCreate(CamelModel):
    event_id: str = Field(min_length=1)
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    status: Optional[AttendeeStatus] = None

    @field_validator("event_id", "name", mode="before")
    @classmethod
    def _clean_line(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)


class AttendeeUpdate(PartialUpdateModel):
    event_id: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    status: Optional[AttendeeStatus] = None

    @field_validator("event_id", "name", mode="before")
    @classmethod
    def _clean_line(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)


class AttendeeRead(CamelModel):
    id: str
    event_id: str
    name: str
    email: str
    phone: Optional[str] = None
    registration_date: datetime
    status: AttendeeStatus = AttendeeStatus.registered
    created_at: datetime
    updated_at: datetime


# ============================================================
# Scheduler
# ============================================================

class SchedulerJobRead(CamelModel):
    name: str
    schedule: str
    running: bool = False
    last_started_at: Optional[datetime] = None
    last_finished_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_result: Optional[dict] = None
