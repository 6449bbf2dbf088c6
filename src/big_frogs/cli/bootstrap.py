# src/big_frogs/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/notifier/stores),
- loads both stores so rollover and the reminder happen at startup.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, tzinfo

from ..config import get_settings, resolve_timezone
from ..core.runtime import BackgroundLoop, start_background_loop
from ..core.state import AppState
from ..notifications.local_notifier import LocalNotifier
from ..storage.sqlite_kv import SqliteKeyValueStore
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_store import BigFrogStore, DailyTaskStore

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _zone_clock(tz: tzinfo | None) -> Callable[[], datetime]:
    if tz is None:
        return _local_now
    return lambda: datetime.now(tz)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    runtime: BackgroundLoop | None = None,
    clock: Callable[[], datetime] | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings(). Without an explicit clock,
    "now" is read in settings.timezone (or the host zone).
    """
    if settings is None:
        settings = get_settings()

    tz = resolve_timezone(settings.timezone)
    if clock is None:
        clock = _zone_clock(tz)

    _ensure_local_dirs(settings)

    storage = SqliteKeyValueStore(settings.db_path)
    notifier = LocalNotifier(permission_granted=settings.notifications_enabled)
    reminders = ReminderScheduler(
        notifier,
        at=settings.reminder_time,
        title=settings.reminder_title,
        body=settings.reminder_body,
        clock=clock,
        tz=tz,
    )

    return AppState(
        settings=settings,
        runtime=runtime or start_background_loop(),
        notifier=notifier,
        big_frogs=BigFrogStore(storage, key=settings.big_frogs_key, clock=clock),
        daily=DailyTaskStore(storage, key=settings.daily_key, reminders=reminders, clock=clock),
    )


def load_stores(state: AppState) -> bool:
    """Initial load of both stores. Returns False if either failed to persist its rollover."""
    frogs = state.runtime.run(state.big_frogs.load())
    daily = state.runtime.run(state.daily.load())

    logger.info(
        "Loaded big_frogs=%d (rolled_over=%s) daily=%d (rolled_over=%s)",
        len(frogs.tasks),
        frogs.rolled_over,
        len(daily.tasks),
        daily.rolled_over,
    )
    if not frogs.ok:
        logger.warning("Big frogs load did not persist: %s", frogs.error)
    if not daily.ok:
        logger.warning("Daily tasks load did not persist: %s", daily.error)
    return frogs.ok and daily.ok
