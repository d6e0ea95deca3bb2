"""Small helpers shared by the service and scheduler layers."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Literal, Sequence, TypeVar

T = TypeVar("T")

Clock = Callable[[], datetime]
SortOrder = Literal["asc", "desc"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(value):
    if value is None:
        return (0, 0)
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        # Case-insensitive first, then the raw text so "a" and "A" order consistently.
        return (1, value.casefold(), value)
    if isinstance(value, datetime):
        return (1, value.timestamp())
    return (1, value)


def sort_records(
    records: Iterable[T],
    sort_by: str,
    order: SortOrder = "asc",
) -> list[T]:
    """Sort models by attribute ``sort_by``; text compares case-insensitively,
    numbers and datetimes by value. ``order`` is "asc" or "desc"."""

    return sorted(
        records,
        key=lambda record: _sort_key(getattr(record, sort_by)),
        reverse=order == "desc",
    )


def count_by(records: Sequence[T], attribute: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    for record in records:
        value = getattr(record, attribute)
        key = value.value if isinstance(value, Enum) else str(value)
        counts[key] = counts.get(key, 0) + 1
    return counts
