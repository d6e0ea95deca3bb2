import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import init_models
from app.store import InMemoryDocumentStore, SqlDocumentStore


async def _sql_store():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_models(engine)
    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    return engine, SqlDocumentStore(factory)


async def _exercise(store):
    first = await store.add("events", {"name": "Tech Talk", "status": "upcoming"})
    second = await store.add("events", {"name": "Hack Night", "status": "completed"})
    await store.add("categories", {"name": "Meetup"})

    fetched = await store.get("events", first.id)
    assert fetched.data == {"name": "Tech Talk", "status": "upcoming"}
    # ids are scoped to their collection
    assert await store.get("categories", first.id) is None

    every = await store.query("events")
    assert [doc.id for doc in every] == [first.id, second.id]
    completed = await store.query("events", {"status": "completed", "location": None})
    assert [doc.id for doc in completed] == [second.id]

    updated = await store.update("events", first.id, {"status": "completed"})
    assert updated.data == {"name": "Tech Talk", "status": "completed"}
    assert len(await store.query("events", {"status": "completed"})) == 2
    assert await store.update("events", "missing", {"status": "x"}) is None

    assert await store.delete("events", first.id) is True
    assert await store.delete("events", first.id) is False
    assert await store.get("events", first.id) is None


def test_in_memory_store_operations():
    asyncio.run(_exercise(InMemoryDocumentStore()))


def test_in_memory_store_returns_copies():
    async def _run():
        store = InMemoryDocumentStore()
        doc = await store.add("events", {"name": "Tech Talk"})
        doc.data["name"] = "changed"
        fetched = await store.get("events", doc.id)
        fetched.data["name"] = "changed again"
        assert (await store.get("events", doc.id)).data == {"name": "Tech Talk"}

    asyncio.run(_run())


def test_in_memory_store_reset():
    async def _run():
        store = InMemoryDocumentStore()
        await store.add("events", {"name": "Tech Talk"})
        store.reset()
        assert await store.query("events") == []

    asyncio.run(_run())


def test_sql_store_operations():
    async def _run():
        engine, store = await _sql_store()
        try:
            await _exercise(store)
        finally:
            await engine.dispose()

    asyncio.run(_run())
