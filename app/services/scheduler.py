"""
Background status scheduler.

Each job re-reads the store, derives its decisions from current contents and
applies them one entity at a time. A failure on one entity is logged and the
pass moves on; a failure of a whole pass is logged by the job loop and the next
tick runs as usual. Jobs never overlap with themselves: a tick (or a manual
trigger) that arrives while the previous pass is still running is skipped.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Awaitable, Callable, Optional, Union
from zoneinfo import ZoneInfo

from app.notifications import EmailNotifier, Notifier
from app.schemas import (
    AttendeeRead,
    AttendeeStatus,
    AttendeeUpdate,
    EventRead,
    EventStatus,
    EventUpdate,
)
from app.services.attendees import AttendeeService
from app.services.events import EventService
from app.utils import Clock, count_by, utcnow

_LOGGER = logging.getLogger(__name__)

CLEANUP_AFTER = timedelta(days=30)
REMINDER_WINDOW = timedelta(hours=24)

_WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


# ------------------------------------------------------------------
# Schedules
# ------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class IntervalSchedule:
    seconds: float

    def next_run(self, now: datetime, tz: Optional[tzinfo]) -> datetime:
        return now + timedelta(seconds=self.seconds)

    def describe(self) -> str:
        return f"every {self.seconds:g}s"


@dataclass(frozen=True, slots=True)
class DailySchedule:
    """Fires at ``hour:minute`` local time; on one weekday only when ``weekday`` is set (Monday=0)."""

    hour: int
    minute: int = 0
    weekday: Optional[int] = None

    def _at(self, day: date, tz: Optional[tzinfo]) -> datetime:
        wall = datetime.combine(day, time(self.hour, self.minute))
        # Naive wall time resolves against the host zone's rules (DST included) for that day.
        return wall.astimezone() if tz is None else wall.replace(tzinfo=tz)

    def next_run(self, now: datetime, tz: Optional[tzinfo]) -> datetime:
        today = now.astimezone(tz).date()
        for offset in range(8):
            day = today + timedelta(days=offset)
            if self.weekday is not None and day.weekday() != self.weekday:
                continue
            candidate = self._at(day, tz)
            if candidate > now:
                return candidate
        raise AssertionError("no slot within a week")  # pragma: no cover

    def describe(self) -> str:
        when = f"{self.hour:02d}:{self.minute:02d}"
        if self.weekday is None:
            return f"daily at {when}"
        return f"{_WEEKDAYS[self.weekday]}s at {when}"


Schedule = Union[IntervalSchedule, DailySchedule]


# ------------------------------------------------------------------
# Pass results
# ------------------------------------------------------------------
@dataclass
class TransitionResult:
    updated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass
class ReminderResult:
    events: list[str] = field(default_factory=list)
    notified: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass
class CleanupResult:
    candidates: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass
class DailySummary:
    total_events: int
    events_by_status: dict[str, int]
    total_attendees: int


@dataclass
class _Job:
    name: str
    schedule: Schedule
    run: Callable[[], Awaitable[Any]]
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    last_started_at: Optional[datetime] = None
    last_finished_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_result: Optional[dict] = None


def _default_timezone() -> Optional[tzinfo]:
    name = os.getenv("SCHEDULER_TIMEZONE", "").strip()
    return ZoneInfo(name) if name else None


class EventScheduler:
    """Owns the periodic status-transition jobs and their asyncio tasks."""

    def __init__(
        self,
        events: EventService,
        attendees: AttendeeService,
        *,
        notifier: Optional[Notifier] = None,
        clock: Clock = utcnow,
        tz: Optional[tzinfo] = None,
        status_interval: Optional[float] = None,
    ) -> None:
        self._events = events
        self._attendees = attendees
        self._notifier = notifier or EmailNotifier()
        self._clock = clock
        # None means the host's local timezone.
        self._tz = tz if tz is not None else _default_timezone()
        interval = status_interval or float(os.getenv("EVENT_STATUS_INTERVAL", "60"))
        self._tasks: list[asyncio.Task] = []
        self.jobs: dict[str, _Job] = {
            job.name: job
            for job in (
                _Job("event_status", IntervalSchedule(interval), self.update_event_status),
                _Job("auto_attendance", DailySchedule(2, 0), self.auto_mark_attendance),
                _Job("event_reminders", DailySchedule(9, 0), self.send_event_reminders),
                _Job(
                    "cancelled_cleanup",
                    DailySchedule(3, 0, weekday=6),
                    self.find_cancelled_cleanup_candidates,
                ),
                _Job("daily_summary", DailySchedule(23, 59), self.generate_daily_summary),
            )
        }

    async def _attendees_of(
        self, event: EventRead, status: AttendeeStatus
    ) -> Optional[list[AttendeeRead]]:
        """Attendees of ``event`` in ``status``; ``None`` (logged) if the lookup fails."""

        try:
            return await self._attendees.list_attendees(event_id=event.id, status=status)
        except Exception:
            _LOGGER.exception("Could not load %s attendees of event %s", status.value, event.id)
            return None

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------
    async def update_event_status(self) -> TransitionResult:
        """Mark every event whose date has passed as completed."""

        result = TransitionResult()
        now = self._clock()
        for event in await self._events.list_events():
            if event.date >= now or event.status == EventStatus.completed:
                continue
            try:
                updated = await self._events.update_event(
                    event.id, EventUpdate(status=EventStatus.completed)
                )
            except Exception:
                _LOGGER.exception("Could not complete event %s", event.id)
                result.failed.append(event.id)
                continue
            if updated is None:
                continue
            result.updated.append(event.id)
            _LOGGER.info("Event %r marked as completed", event.name)

        if result.updated:
            _LOGGER.info("Updated %d event(s) to completed status", len(result.updated))
        else:
            _LOGGER.info("No event status updates needed")
        return result

    async def auto_mark_attendance(self) -> TransitionResult:
        """Registered attendees of events held yesterday (local calendar day) become attended."""

        result = TransitionResult()
        yesterday = self._clock().astimezone(self._tz).date() - timedelta(days=1)
        for event in await self._events.list_events():
            if event.date.astimezone(self._tz).date() != yesterday:
                continue
            attendees = await self._attendees_of(event, AttendeeStatus.registered)
            if attendees is None:
                result.failed.append(event.id)
                continue
            for attendee in attendees:
                try:
                    updated = await self._attendees.update_attendee(
                        attendee.id, AttendeeUpdate(status=AttendeeStatus.attended)
                    )
                except Exception:
                    _LOGGER.exception("Could not mark attendee %s as attended", attendee.id)
                    result.failed.append(attendee.id)
                    continue
                if updated is None:
                    continue
                result.updated.append(attendee.id)
                _LOGGER.info(
                    "Marked attendee %r as attended for event %r", attendee.name, event.name
                )

        if result.updated:
            _LOGGER.info("Auto-marked %d attendee(s) as attended", len(result.updated))
        else:
            _LOGGER.info("No attendance updates needed")
        return result

    async def send_event_reminders(self) -> ReminderResult:
        """Remind registered attendees of upcoming events starting within 24 hours."""

        result = ReminderResult()
        now = self._clock()
        horizon = now + REMINDER_WINDOW
        for event in await self._events.list_events(status=EventStatus.upcoming):
            if not now < event.date <= horizon:
                continue
            attendees = await self._attendees_of(event, AttendeeStatus.registered)
            if attendees is None:
                result.failed.append(event.id)
                continue
            if not attendees:
                continue
            _LOGGER.info(
                "Reminder: event %r starting soon (%s), %d attendee(s) to notify",
                event.name,
                event.date.isoformat(),
                len(attendees),
            )
            result.events.append(event.id)
            for attendee in attendees:
                try:
                    await self._notifier.send_reminder(event, attendee)
                except Exception:
                    _LOGGER.exception("Reminder to %s failed", attendee.email)
                    result.failed.append(attendee.id)
                    continue
                result.notified.append(attendee.id)

        if result.events:
            _LOGGER.info("Sent reminders for %d upcoming event(s)", len(result.events))
        else:
            _LOGGER.info("No upcoming events requiring reminders")
        return result

    async def find_cancelled_cleanup_candidates(self) -> CleanupResult:
        """List cancelled attendees of events completed over 30 days ago.

        Identification only: nothing is deleted.
        """

        result = CleanupResult()
        cutoff = self._clock() - CLEANUP_AFTER
        for event in await self._events.list_events(status=EventStatus.completed):
            if event.date >= cutoff:
                continue
            cancelled = await self._attendees_of(event, AttendeeStatus.cancelled)
            if cancelled is None:
                result.failed.append(event.id)
                continue
            for attendee in cancelled:
                _LOGGER.info(
                    "Would clean up cancelled attendee %r from old event %r",
                    attendee.name,
                    event.name,
                )
                result.candidates.append(attendee.id)

        if result.candidates:
            _LOGGER.info(
                "Identified %d old cancelled attendee(s) for cleanup", len(result.candidates)
            )
        else:
            _LOGGER.info("No old cancelled attendees to clean up")
        return result

    async def generate_daily_summary(self) -> DailySummary:
        events = await self._events.list_events()
        attendees = await self._attendees.list_attendees()
        by_status = {status.value: 0 for status in EventStatus}
        by_status.update(count_by(events, "status"))
        summary = DailySummary(
            total_events=len(events),
            events_by_status=by_status,
            total_attendees=len(attendees),
        )
        await self._notifier.publish_summary(asdict(summary))
        return summary

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------
    async def run_job(self, name: str) -> Optional[Any]:
        """Run one pass of ``name`` now; ``None`` when a pass is already in progress.

        Raises ``KeyError`` for unknown job names.
        """

        job = self.jobs[name]
        if job.lock.locked():
            _LOGGER.warning("Job %s is still running; skipping this run", name)
            return None

        async with job.lock:
            job.last_started_at = self._clock()
            job.last_error = None
            _LOGGER.info("Running job %s", name)
            try:
                result = await job.run()
            except Exception as exc:
                job.last_error = str(exc)
                raise
            finally:
                job.last_finished_at = self._clock()
            job.last_result = asdict(result)
            return result

    def _next_due(self, job: _Job, previous: Optional[datetime]) -> datetime:
        """Next slot strictly after both now and the slot that last fired.

        ``asyncio.sleep`` may wake a little before the wall clock reaches
        ``previous``; counting from ``previous`` keeps that slot from firing twice.
        """

        now = self._clock()
        base = now if previous is None else max(now, previous)
        return job.schedule.next_run(base, self._tz)

    async def _loop(self, job: _Job) -> None:
        due: Optional[datetime] = None
        while True:
            due = self._next_due(job, due)
            delay = (due - self._clock()).total_seconds()
            await asyncio.sleep(max(delay, 0))
            try:
                await self.run_job(job.name)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                _LOGGER.exception("Scheduled job %s failed: %s", job.name, exc)

    def start(self) -> None:
        if self._tasks:
            return
        for job in self.jobs.values():
            self._tasks.append(asyncio.create_task(self._loop(job), name=f"scheduler:{job.name}"))
            _LOGGER.info("Scheduled %s (%s)", job.name, job.schedule.describe())

    async def stop(self) -> None:
        if not self._tasks:
            return
        for task in self._tasks:
            task.cancel()
        try:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self._tasks = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def describe_jobs(self) -> list[dict]:
        return [
            {
                "name": job.name,
                "schedule": job.schedule.describe(),
                "running": job.lock.locked(),
                "last_started_at": job.last_started_at,
                "last_finished_at": job.last_finished_at,
                "last_error": job.last_error,
                "last_result": job.last_result,
            }
            for job in self.jobs.values()
        ]
