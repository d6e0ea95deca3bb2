import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

import app.notifications as notifications
from app.email_templates import reminder_html
from app.emailer import send_email


def test_send_email_skips_without_smtp(monkeypatch):
    for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    assert send_email("jane@example.com", "Hi", "<p>Hi</p>") is False


def test_reminder_html_escapes_names():
    html = reminder_html("<Jane>", "Tech & Talk", "2030-01-01T10:00:00+00:00", "Hall")
    assert "&lt;Jane&gt;" in html
    assert "Tech &amp; Talk" in html


def test_email_notifier_sends_reminder(monkeypatch):
    sent = []

    def _fake_send(to_email, subject, html, text=None):
        sent.append((to_email, subject, text))
        return True

    monkeypatch.setattr(notifications, "send_email", _fake_send)
    event = SimpleNamespace(
        name="Tech Talk",
        date=datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc),
        location="Main Hall",
    )
    attendee = SimpleNamespace(name="Jane", email="jane@example.com")

    asyncio.run(notifications.EmailNotifier().send_reminder(event, attendee))

    assert len(sent) == 1
    to_email, subject, text = sent[0]
    assert to_email == "jane@example.com"
    assert subject == "Reminder: Tech Talk starts soon"
    assert "Main Hall" in text
