from datetime import datetime
from typing import Any

from app.repositories.base import DocumentRepository
from app.schemas import AttendeeRead

ATTENDEES_COLLECTION = "attendees"


class AttendeeRepository(DocumentRepository[AttendeeRead]):
    collection = ATTENDEES_COLLECTION
    model = AttendeeRead
    # registrationDate is stamped once at creation.
    immutable_fields = frozenset({"id", "created_at", "registration_date"})

    def _creation_fields(self, now: datetime) -> dict[str, Any]:
        return {**super()._creation_fields(now), "registration_date": now}
