from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.auth_token import create_access_token
from app.main import create_app
from app.store import InMemoryDocumentStore


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def auth_header(uid: str = "user-1", role: str = "user") -> dict:
    token = create_access_token({"uid": uid, "role": role, "email": f"{uid}@example.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def client(store):
    return TestClient(create_app(store, scheduler_enabled=False))


@pytest.fixture
def admin():
    return auth_header("admin-1", "admin")


@pytest.fixture
def organizer():
    return auth_header("org-1", "organizer")
