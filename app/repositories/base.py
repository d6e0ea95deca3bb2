from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, ClassVar, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from app.errors import RepositoryError
from app.store import DocumentStore, StoredDocument
from app.utils import Clock, utcnow

_LOGGER = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def to_document(data: Mapping[str, Any]) -> dict[str, Any]:
    """snake_case domain fields -> camelCase JSON-safe document fields."""
    return {to_camel(key): _encode(value) for key, value in data.items()}


class DocumentRepository(Generic[ModelT]):
    """Maps one store collection to a read model and stamps createdAt/updatedAt.

    Any failure below this layer is re-raised as ``RepositoryError``.
    """

    collection: ClassVar[str]
    model: ClassVar[type[BaseModel]]
    # Fields callers may never overwrite through ``update``.
    immutable_fields: ClassVar[frozenset[str]] = frozenset({"id", "created_at"})

    def __init__(self, store: DocumentStore, *, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    def _to_model(self, doc: StoredDocument) -> ModelT:
        return self.model.model_validate({**doc.data, "id": doc.id})

    def _failure(self, action: str, exc: Exception) -> RepositoryError:
        _LOGGER.error("%s on %s failed: %s", action, self.collection, exc)
        return RepositoryError(f"Failed to {action} {self.collection}: {exc}")

    async def find_all(self, filters: Optional[Mapping[str, Any]] = None) -> list[ModelT]:
        try:
            docs = await self._store.query(self.collection, to_document(filters or {}))
            return [self._to_model(doc) for doc in docs]
        except Exception as exc:
            raise self._failure("fetch", exc) from exc

    async def find_by_id(self, doc_id: str) -> Optional[ModelT]:
        try:
            doc = await self._store.get(self.collection, doc_id)
            return self._to_model(doc) if doc is not None else None
        except Exception as exc:
            raise self._failure("fetch", exc) from exc

    def _creation_fields(self, now: datetime) -> dict[str, Any]:
        return {"created_at": now, "updated_at": now}

    async def create(self, data: Mapping[str, Any]) -> ModelT:
        payload = {**dict(data), **self._creation_fields(self._clock())}
        try:
            doc = await self._store.add(self.collection, to_document(payload))
            return self._to_model(doc)
        except Exception as exc:
            raise self._failure("create", exc) from exc

    async def update(self, doc_id: str, changes: Mapping[str, Any]) -> Optional[ModelT]:
        """Merge ``changes`` into the document; ``None`` when it does not exist."""

        fields = {k: v for k, v in changes.items() if k not in self.immutable_fields}
        try:
            existing = await self._store.get(self.collection, doc_id)
            if existing is None:
                return None
            previous = self._to_model(existing).updated_at
            now = self._clock()
            if now <= previous:
                now = previous + timedelta(microseconds=1)
            fields["updated_at"] = now
            doc = await self._store.update(self.collection, doc_id, to_document(fields))
            return self._to_model(doc) if doc is not None else None
        except Exception as exc:
            raise self._failure("update", exc) from exc

    async def delete(self, doc_id: str) -> bool:
        try:
            return await self._store.delete(self.collection, doc_id)
        except Exception as exc:
            raise self._failure("delete", exc) from exc
