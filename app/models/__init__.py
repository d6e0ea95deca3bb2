"""ORM models registered with ``app.database.Base``."""

from app.models.document import Document  # noqa: F401

__all__ = ["Document"]
