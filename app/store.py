"""
Document store abstraction: a SQLAlchemy-backed implementation and an in-memory one.

Both expose the same small surface, keyed by collection name and document id:
``get``, ``query`` (equality filters), ``add``, ``update`` (partial merge) and
``delete``. Backend failures surface as ``StoreError``.
"""

from __future__ import annotations

import copy
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.models.document import Document

_LOGGER = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the underlying document backend fails."""


@dataclass
class StoredDocument:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentStore(Protocol):
    """Interface for document access by collection and id."""

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        ...

    async def query(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> list[StoredDocument]:
        ...

    async def add(self, collection: str, data: Mapping[str, Any]) -> StoredDocument:
        ...

    async def update(
        self, collection: str, doc_id: str, changes: Mapping[str, Any]
    ) -> Optional[StoredDocument]:
        ...

    async def delete(self, collection: str, doc_id: str) -> bool:
        ...


def _new_id() -> str:
    return uuid.uuid4().hex


def _active_filters(filters: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    return {key: value for key, value in (filters or {}).items() if value is not None}


class InMemoryDocumentStore:
    """Dictionary-backed store for development and tests.

    Every instance owns its own collections, so tests can build isolated stores.
    """

    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(name, {})

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return StoredDocument(id=doc_id, data=copy.deepcopy(data))

    async def query(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> list[StoredDocument]:
        wanted = _active_filters(filters)
        return [
            StoredDocument(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
            if all(data.get(key) == value for key, value in wanted.items())
        ]

    async def add(self, collection: str, data: Mapping[str, Any]) -> StoredDocument:
        doc_id = _new_id()
        self._collection(collection)[doc_id] = copy.deepcopy(dict(data))
        return StoredDocument(id=doc_id, data=copy.deepcopy(dict(data)))

    async def update(
        self, collection: str, doc_id: str, changes: Mapping[str, Any]
    ) -> Optional[StoredDocument]:
        docs = self._collection(collection)
        if doc_id not in docs:
            return None
        docs[doc_id].update(copy.deepcopy(dict(changes)))
        return StoredDocument(id=doc_id, data=copy.deepcopy(docs[doc_id]))

    async def delete(self, collection: str, doc_id: str) -> bool:
        return self._collection(collection).pop(doc_id, None) is not None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()


class SqlDocumentStore:
    """Document store over the ``documents`` table using async SQLAlchemy sessions."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        try:
            async with self._session_factory() as db:
                row = await db.get(Document, doc_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"get {collection}/{doc_id} failed: {exc}") from exc
        if row is None or row.collection != collection:
            return None
        return StoredDocument(id=row.id, data=dict(row.data or {}))

    async def query(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> list[StoredDocument]:
        stmt = select(Document).where(Document.collection == collection)
        for key, value in _active_filters(filters).items():
            stmt = stmt.where(Document.data[key].as_string() == str(value))
        stmt = stmt.order_by(Document.seq, Document.id)
        try:
            async with self._session_factory() as db:
                rows = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(f"query {collection} failed: {exc}") from exc
        return [StoredDocument(id=row.id, data=dict(row.data or {})) for row in rows]

    async def add(self, collection: str, data: Mapping[str, Any]) -> StoredDocument:
        row = Document(
            id=_new_id(),
            collection=collection,
            data=dict(data),
            seq=time.time_ns(),
        )
        try:
            async with self._session_factory() as db:
                db.add(row)
                await db.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"add to {collection} failed: {exc}") from exc
        return StoredDocument(id=row.id, data=dict(data))

    async def update(
        self, collection: str, doc_id: str, changes: Mapping[str, Any]
    ) -> Optional[StoredDocument]:
        try:
            async with self._session_factory() as db:
                row = await db.get(Document, doc_id)
                if row is None or row.collection != collection:
                    return None
                # Reassign so the JSON column is flagged dirty.
                row.data = {**(row.data or {}), **dict(changes)}
                db.add(row)
                await db.commit()
                merged = dict(row.data)
        except SQLAlchemyError as exc:
            raise StoreError(f"update {collection}/{doc_id} failed: {exc}") from exc
        return StoredDocument(id=doc_id, data=merged)

    async def delete(self, collection: str, doc_id: str) -> bool:
        try:
            async with self._session_factory() as db:
                row = await db.get(Document, doc_id)
                if row is None or row.collection != collection:
                    return False
                await db.delete(row)
                await db.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"delete {collection}/{doc_id} failed: {exc}") from exc
        _LOGGER.debug("Deleted %s/%s", collection, doc_id)
        return True
