# src/big_frogs/notifications/local_notifier.py

from __future__ import annotations

"""
In-process one-shot notifier.

Alerts live in memory only: the daily store reschedules its reminder on every
load, so nothing needs to survive a restart.

run_notification_loop() is a small polling loop that:
- pops due alerts,
- delivers them via an injected messenger port,
- re-queues an alert with a delay when delivery fails.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from ..core.ports import OutboundMessenger

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True, frozen=True)
class PendingAlert:
    handle: str
    title: str
    body: str
    fire_at: datetime

    def render(self) -> str:
        return f"{self.title}: {self.body}" if self.title else self.body


class LocalNotifier:
    """Implements the Notifier port with an in-memory table of pending alerts."""

    def __init__(self, *, permission_granted: bool = True) -> None:
        self._permission_granted = permission_granted
        self._pending: dict[str, PendingAlert] = {}
        # Bumped by cancel_all(); a delivery retry from an older generation is dropped.
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def request_permission(self) -> bool:
        return self._permission_granted

    async def schedule_one_shot(self, title: str, body: str, fire_at: datetime) -> str:
        if not self._permission_granted:
            raise PermissionError("notifications are disabled")
        handle = uuid.uuid4().hex
        self._pending[handle] = PendingAlert(handle=handle, title=title, body=body, fire_at=fire_at)
        logger.debug("Alert scheduled handle=%s fire_at=%s", handle, fire_at.isoformat())
        return handle

    async def cancel_all(self) -> None:
        if self._pending:
            logger.debug("Cancelling %d pending alert(s)", len(self._pending))
        self._pending.clear()
        self._generation += 1

    def pending(self) -> list[PendingAlert]:
        return sorted(self._pending.values(), key=lambda a: a.fire_at)

    def pop_due(self, now: datetime) -> list[PendingAlert]:
        due = [a for a in self._pending.values() if a.fire_at <= now]
        for alert in due:
            self._pending.pop(alert.handle, None)
        return sorted(due, key=lambda a: a.fire_at)

    def requeue(self, alert: PendingAlert, fire_at: datetime, *, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Alert %s was cancelled during delivery; not retrying", alert.handle)
            return False
        self._pending[alert.handle] = replace(alert, fire_at=fire_at)
        return True


async def run_notification_loop(
        notifier: LocalNotifier,
        messenger: OutboundMessenger,
        *,
        interval_seconds: float = 15.0,
        retry_delay_seconds: float = 60.0,
        clock: Callable[[], datetime] = _local_now,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds:
    - pop alerts with fire_at <= now
    - send via messenger.send_text(...)
    - on failure push fire_at forward by retry_delay_seconds and keep the alert

    To stop the loop, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    retry_s = max(0.01, float(retry_delay_seconds))

    while True:
        now = clock()

        for alert in notifier.pop_due(now):
            generation = notifier.generation
            try:
                await messenger.send_text(text=alert.render())
                logger.info("Alert delivered handle=%s", alert.handle)
            except Exception:
                logger.exception("Alert delivery failed handle=%s; retrying in %.0fs", alert.handle, retry_s)
                notifier.requeue(alert, clock() + timedelta(seconds=retry_s), generation=generation)

        await asyncio.sleep(sleep_s)
