import asyncio
from datetime import timedelta

import app.database as database
from app.repositories import CategoryRepository, EventRepository
from app.schemas import CategoryCreate, EventCreate
from app.services import CategoryService, EventService
from app.store import SqlDocumentStore
from app.utils import utcnow


async def main() -> None:
    """Create the documents table and seed a few sample categories and events."""

    # Engine is configured from the current env (DATABASE_URL normalised inside database.py)
    await database.init_models()
    store = SqlDocumentStore(database.SessionLocal)
    categories = CategoryService(CategoryRepository(store))
    events = EventService(EventRepository(store))

    for name in ("Conference", "Workshop", "Meetup"):
        await categories.create_category(CategoryCreate(name=name))

    soon = utcnow() + timedelta(days=7)
    await events.create_event(
        EventCreate(name="Tech Conference", date=soon, location="Main Hall", capacity=200)
    )
    await events.create_event(
        EventCreate(
            name="Python Workshop",
            description="Hands-on introduction to async Python.",
            date=soon + timedelta(days=14),
            location="Room 101",
            capacity=30,
        )
    )
    print("Seeded sample categories and events.")


if __name__ == "__main__":
    asyncio.run(main())
