"""Outbound notifications emitted by the scheduler (reminders, daily summary)."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from app.email_templates import reminder_html, reminder_subject, reminder_text
from app.emailer import send_email
from app.schemas import AttendeeRead, EventRead

_LOGGER = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send_reminder(self, event: EventRead, attendee: AttendeeRead) -> None:
        ...

    async def publish_summary(self, summary: dict) -> None:
        ...


class EmailNotifier:
    """Reminders go out by e-mail; the daily summary goes to the log."""

    async def send_reminder(self, event: EventRead, attendee: AttendeeRead) -> None:
        starts_at = event.date.isoformat()
        _LOGGER.info("Sending reminder for %r to %s", event.name, attendee.email)
        # smtplib blocks; keep it off the event loop.
        await asyncio.to_thread(
            send_email,
            attendee.email,
            reminder_subject(event.name),
            reminder_html(attendee.name, event.name, starts_at, event.location),
            reminder_text(attendee.name, event.name, starts_at, event.location),
        )

    async def publish_summary(self, summary: dict) -> None:
        _LOGGER.info("===== Daily Event Summary =====")
        _LOGGER.info("Total events: %s", summary["total_events"])
        for status, count in summary["events_by_status"].items():
            _LOGGER.info("- %s: %s", status.capitalize(), count)
        _LOGGER.info("Total attendees: %s", summary["total_attendees"])
