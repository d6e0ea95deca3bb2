from app.repositories.base import DocumentRepository
from app.schemas import EventRead

EVENTS_COLLECTION = "events"


class EventRepository(DocumentRepository[EventRead]):
    collection = EVENTS_COLLECTION
    model = EventRead
