# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, time, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from big_frogs.cli.bootstrap import create_initial_state
from big_frogs.core.state import AppState

from .fakes import FakeClock, FakeNotifier, MemoryStorage


@pytest.fixture()
def clock() -> FakeClock:
    """Wednesday morning, well before the 21:00 reminder."""
    return FakeClock(datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc))


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with create_initial_state.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="big-frogs-test",
        data_dir=tmp_path,
        db_path=tmp_path / "big_frogs.sqlite3",
        big_frogs_key="@big_frogs_tasks",
        daily_key="@daily_tasks",
        timezone="UTC",
        reminder_time=time(21, 0),
        reminder_title="Daily tasks",
        reminder_body="You still have unfinished daily tasks today.",
        notifications_enabled=True,
        notify_interval_seconds=0.01,
        console_enabled=False,
        matrix_enabled=False,
    )


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock) -> Iterator[AppState]:
    """
    AppState wired with the real SQLite storage and local notifier.

    The background event loop is stopped after the test.
    """
    app_state = create_initial_state(settings=settings, clock=clock)
    try:
        yield app_state
    finally:
        app_state.runtime.stop()
        app_state.runtime.join(timeout=5.0)
