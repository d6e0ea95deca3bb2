from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from app.deps.services import get_event_service
from app.main import create_app
from app.store import StoreError

from conftest import FakeClock, auth_header

API = "/api/v1"


def _future(days: int = 5) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _create_event(client, headers, **overrides):
    body = {
        "name": "Tech Conference",
        "description": "Yearly meetup",
        "date": _future(),
        "location": "Main Hall",
        "capacity": 100,
    }
    body.update(overrides)
    response = client.post(f"{API}/events", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_root_and_health(client):
    assert client.get("/").json()["docs"] == "/docs"
    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert "timestamp" in health


def test_create_event_returns_envelope(client, organizer):
    response = client.post(
        f"{API}/events",
        json={"name": "Tech Conference", "date": _future(), "location": "Main Hall"},
        headers=organizer,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Event created successfully"
    event = body["data"]
    assert event["status"] == "upcoming"
    assert event["capacity"] == 0
    assert event["description"] == ""
    assert event["createdAt"] == event["updatedAt"]

    fetched = client.get(f"{API}/events/{event['id']}").json()
    assert fetched["data"] == event


def test_create_event_in_the_past_is_rejected(client, admin):
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = client.post(
        f"{API}/events",
        json={"name": "Too late", "date": past, "location": "Main Hall"},
        headers=admin,
    )
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Event date must be in the future",
        "errorCode": "SERVICE_ERROR",
    }


def test_event_validation_errors(client, admin):
    response = client.post(
        f"{API}/events",
        json={"name": "ab", "date": "not a date", "location": "Main Hall", "capacity": 0},
        headers=admin,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation error"
    fields = {error.split(":")[0] for error in body["errors"]}
    assert {"name", "date", "capacity"} <= fields


def test_html_in_event_name_is_rejected(client, admin):
    response = client.post(
        f"{API}/events",
        json={"name": "<b>Party</b>", "date": _future(), "location": "Main Hall"},
        headers=admin,
    )
    assert response.status_code == 400


def test_list_events_sorted_and_filtered(client, admin):
    _create_event(client, admin, name="Small", capacity=10)
    _create_event(client, admin, name="Large", capacity=500, location="Stadium")
    _create_event(client, admin, name="Medium", capacity=50)

    response = client.get(f"{API}/events", params={"sortBy": "capacity", "order": "desc"})
    body = response.json()
    assert body["count"] == 3
    assert [e["capacity"] for e in body["data"]] == [500, 50, 10]

    stadium = client.get(f"{API}/events", params={"location": "Stadium"}).json()
    assert [e["name"] for e in stadium["data"]] == ["Large"]

    assert client.get(f"{API}/events", params={"sortBy": "color"}).status_code == 400


def test_update_event_requires_a_field(client, admin):
    event = _create_event(client, admin)
    response = client.put(f"{API}/events/{event['id']}", json={}, headers=admin)
    assert response.status_code == 400
    assert any("At least one field" in error for error in response.json()["errors"])


def test_update_event_changes_only_sent_fields(client, admin):
    event = _create_event(client, admin)
    response = client.put(
        f"{API}/events/{event['id']}", json={"status": "ongoing"}, headers=admin
    )
    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["status"] == "ongoing"
    assert updated["name"] == event["name"]
    assert updated["createdAt"] == event["createdAt"]
    assert updated["updatedAt"] > event["updatedAt"]


def test_missing_event_is_404(client, admin):
    assert client.get(f"{API}/events/nope").json() == {
        "success": False,
        "message": "Event with id nope not found",
        "errorCode": "NOT_FOUND",
    }
    assert client.put(f"{API}/events/nope", json={"name": "New name"}, headers=admin).status_code == 404
    assert client.delete(f"{API}/events/nope", headers=admin).status_code == 404


def test_delete_event(client, admin):
    event = _create_event(client, admin)
    response = client.delete(f"{API}/events/{event['id']}", headers=admin)
    assert response.json() == {"success": True, "message": "Event deleted successfully"}
    assert client.get(f"{API}/events/{event['id']}").status_code == 404


def test_event_writes_require_staff(client):
    body = {"name": "Tech Conference", "date": _future(), "location": "Main Hall"}

    anonymous = client.post(f"{API}/events", json=body)
    assert anonymous.status_code == 401
    assert anonymous.json()["errorCode"] == "AUTHENTICATION_ERROR"

    forbidden = client.post(f"{API}/events", json=body, headers=auth_header("u1", "user"))
    assert forbidden.status_code == 403
    assert "Your role: user" in forbidden.json()["message"]

    bad_token = client.post(
        f"{API}/events", json=body, headers={"Authorization": "Bearer not-a-token"}
    )
    assert bad_token.status_code == 401


def test_category_crud(client, organizer):
    created = client.post(
        f"{API}/categories", json={"name": "workshop"}, headers=organizer
    )
    assert created.status_code == 201
    category = created.json()["data"]
    assert category["description"] == ""
    client.post(f"{API}/categories", json={"name": "Conference"}, headers=organizer)

    listed = client.get(f"{API}/categories", params={"sortBy": "name"}).json()
    assert [c["name"] for c in listed["data"]] == ["Conference", "workshop"]

    updated = client.put(
        f"{API}/categories/{category['id']}",
        json={"description": "Hands-on sessions"},
        headers=organizer,
    )
    assert updated.json()["data"]["description"] == "Hands-on sessions"

    assert client.delete(f"{API}/categories/{category['id']}", headers=organizer).status_code == 200
    assert client.get(f"{API}/categories/{category['id']}").status_code == 404


def test_register_attendee(client, admin):
    event = _create_event(client, admin)
    response = client.post(
        f"{API}/attendees",
        json={"eventId": event["id"], "name": "Jane Doe", "email": "jane@example.com"},
        headers=auth_header("jane"),
    )
    assert response.status_code == 201
    attendee = response.json()["data"]
    assert attendee["status"] == "registered"
    assert attendee["eventId"] == event["id"]
    assert "registrationDate" in attendee
    assert "phone" not in attendee

    for_event = client.get(f"{API}/events/{event['id']}/attendees").json()
    assert for_event["message"] == f"Get all attendees for event {event['id']}"
    assert [a["id"] for a in for_event["data"]] == [attendee["id"]]


def test_register_attendee_bad_email(client):
    response = client.post(
        f"{API}/attendees",
        json={"eventId": "evt-1", "name": "Jane Doe", "email": "jane-at-example"},
        headers=auth_header("jane"),
    )
    assert response.status_code == 400
    assert any(error.startswith("email") for error in response.json()["errors"])


def test_register_attendee_requires_login(client):
    response = client.post(
        f"{API}/attendees",
        json={"eventId": "evt-1", "name": "Jane Doe", "email": "jane@example.com"},
    )
    assert response.status_code == 401


def test_attendee_can_update_self_but_not_others(client):
    created = client.post(
        f"{API}/attendees",
        json={"eventId": "evt-1", "name": "Jane Doe", "email": "jane@example.com"},
        headers=auth_header("jane"),
    ).json()["data"]
    path = f"{API}/attendees/{created['id']}"

    other = client.put(path, json={"status": "cancelled"}, headers=auth_header("someone-else"))
    assert other.status_code == 403

    own = client.put(path, json={"status": "cancelled"}, headers=auth_header(created["id"]))
    assert own.status_code == 200
    assert own.json()["data"]["status"] == "cancelled"
    assert own.json()["data"]["registrationDate"] == created["registrationDate"]


def test_list_attendees_filters(client):
    staff = auth_header("org-1", "organizer")
    for name, status in (("Zed", "registered"), ("amy", "registered"), ("Bo", "cancelled")):
        client.post(
            f"{API}/attendees",
            json={
                "eventId": "evt-1",
                "name": name,
                "email": f"{name.lower()}@example.com",
                "status": status,
            },
            headers=staff,
        )

    registered = client.get(
        f"{API}/attendees",
        params={"eventId": "evt-1", "status": "registered", "sortBy": "name"},
    ).json()
    assert [a["name"] for a in registered["data"]] == ["amy", "Zed"]
    assert registered["count"] == 2


def test_scheduler_routes_are_admin_only(client, organizer, admin):
    assert client.get(f"{API}/scheduler/jobs", headers=organizer).status_code == 403

    jobs = client.get(f"{API}/scheduler/jobs", headers=admin).json()
    assert {job["name"] for job in jobs["data"]} >= {"event_status", "daily_summary"}

    run = client.post(f"{API}/scheduler/jobs/event_status/run", headers=admin)
    assert run.status_code == 200
    assert run.json()["data"] == {"updated": [], "failed": []}

    missing = client.post(f"{API}/scheduler/jobs/nope/run", headers=admin)
    assert missing.status_code == 404


def test_repository_failure_is_500():
    class _DownStore:
        async def query(self, collection, filters=None):
            raise StoreError("connection refused")

    client = TestClient(create_app(_DownStore(), scheduler_enabled=False))
    response = client.get(f"{API}/events")
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Failed to retrieve events",
        "errorCode": "SERVICE_FAILURE",
    }


def test_unexpected_error_hides_details_in_production(monkeypatch, store):
    class _Exploding:
        async def list_events(self, **kwargs):
            raise RuntimeError("kaboom")

    app = create_app(store, scheduler_enabled=False)
    app.dependency_overrides[get_event_service] = lambda: _Exploding()
    client = TestClient(app, raise_server_exceptions=False)

    monkeypatch.setenv("APP_ENV", "development")
    body = client.get(f"{API}/events").json()
    assert body["message"] == "An unexpected error occurred"
    assert body["details"] == "kaboom"

    monkeypatch.setenv("APP_ENV", "production")
    assert "details" not in client.get(f"{API}/events").json()


def test_requests_use_the_app_clock(store, admin):
    clock = FakeClock(datetime(2040, 1, 1, tzinfo=timezone.utc))
    client = TestClient(create_app(store, scheduler_enabled=False, clock=clock))

    # Future by the wall clock, past by the app's clock.
    stale = client.post(
        f"{API}/events",
        json={"name": "Reunion", "date": "2035-01-01T10:00:00Z", "location": "Main Hall"},
        headers=admin,
    )
    assert stale.status_code == 400
    assert stale.json()["message"] == "Event date must be in the future"

    created = client.post(
        f"{API}/events",
        json={"name": "Reunion", "date": "2040-06-01T10:00:00Z", "location": "Main Hall"},
        headers=admin,
    )
    assert created.status_code == 201
    assert created.json()["data"]["createdAt"].startswith("2040-01-01T00:00:00")


def test_event_date_must_be_iso_string(client, admin):
    for value in (2000000000, "2000000000"):
        response = client.post(
            f"{API}/events",
            json={"name": "Reunion", "date": value, "location": "Main Hall"},
            headers=admin,
        )
        assert response.status_code == 400
        assert any(error.startswith("date") for error in response.json()["errors"])
