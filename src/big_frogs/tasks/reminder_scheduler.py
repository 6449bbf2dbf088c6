# src/big_frogs/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Evening reminder for daily tasks.

Invariant: a reminder is outstanding iff at least one daily task is incomplete,
and there is never more than one. Nothing is patched incrementally: every call
cancels whatever was scheduled and decides again from the current collection.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, time, timedelta, tzinfo

from ..core.ports import Notifier
from .task_models import DailyTask

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_TIME = time(21, 0)
DEFAULT_REMINDER_TITLE = "Daily tasks"
DEFAULT_REMINDER_BODY = "You still have unfinished daily tasks today."


def _local_now() -> datetime:
    return datetime.now().astimezone()


def next_reminder_at(now: datetime, at: time = DEFAULT_REMINDER_TIME, tz: tzinfo | None = None) -> datetime:
    """
    Today at `at` if now is before it, otherwise tomorrow at `at`.

    With tz (a named zone), the wall-clock time is resolved in that zone on the
    target day, so the UTC offset follows DST changes between now and then.
    Without it the result carries now's tzinfo unchanged.
    """
    if tz is not None:
        now = now.astimezone(tz)
    zone = tz if tz is not None else now.tzinfo

    today_at = datetime.combine(now.date(), at, tzinfo=zone)
    if now < today_at:
        return today_at
    return datetime.combine(now.date() + timedelta(days=1), at, tzinfo=zone)


def has_incomplete(tasks: Iterable[DailyTask]) -> bool:
    return any(not t.completed for t in tasks)


class ReminderScheduler:
    """Owns the daily-task reminder on a Notifier."""

    def __init__(
        self,
        notifier: Notifier,
        *,
        at: time = DEFAULT_REMINDER_TIME,
        title: str = DEFAULT_REMINDER_TITLE,
        body: str = DEFAULT_REMINDER_BODY,
        clock: Callable[[], datetime] = _local_now,
        tz: tzinfo | None = None,
    ) -> None:
        self._notifier = notifier
        self._at = at
        self._title = title
        self._body = body
        self._clock = clock
        self._tz = tz

    async def reschedule(self, tasks: Iterable[DailyTask]) -> datetime | None:
        """
        Cancel the previous reminder, then schedule one if anything is left to do.

        Returns the instant the reminder will fire at, or None when no reminder
        is outstanding (all done, empty list, permission denied, notifier error).
        """
        try:
            await self._notifier.cancel_all()
        except Exception:
            logger.exception("Reminder cancel_all failed")

        if not has_incomplete(tasks):
            logger.debug("All daily tasks complete; no reminder scheduled")
            return None

        try:
            granted = await self._notifier.request_permission()
        except Exception:
            logger.exception("Notification permission request failed")
            return None

        if not granted:
            logger.info("Notification permission denied; daily reminder not scheduled")
            return None

        fire_at = next_reminder_at(self._clock(), self._at, self._tz)
        try:
            handle = await self._notifier.schedule_one_shot(self._title, self._body, fire_at)
        except Exception:
            logger.exception("Scheduling daily reminder failed fire_at=%s", fire_at.isoformat())
            return None

        logger.info("Daily reminder scheduled fire_at=%s handle=%s", fire_at.isoformat(), handle)
        return fire_at
