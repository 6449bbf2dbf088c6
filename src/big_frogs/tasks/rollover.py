# src/big_frogs/tasks/rollover.py

from __future__ import annotations

"""
Daily rollover policy.

Once per load, a store compares the persisted last_date with today. When they
differ (or last_date is missing) the store-specific transform is applied and
last_date moves to today, so a second load on the same day is a no-op.
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import date

from .task_models import DailyTask, FrogTask, PersistedState

RolloverTransform = Callable[[tuple], tuple]


def carry_over_frogs(tasks: tuple[FrogTask, ...]) -> tuple[FrogTask, ...]:
    """Drop finished frogs; unfinished ones start the new day at priority 1."""
    return tuple(replace(t, priority=1) for t in tasks if not t.completed)


def reset_daily(tasks: tuple[DailyTask, ...]) -> tuple[DailyTask, ...]:
    """Every daily task starts the new day incomplete."""
    return tuple(replace(t, completed=False) for t in tasks)


def is_stale(state: PersistedState, today: date) -> bool:
    return state.last_date is None or state.last_date != today


def apply_rollover(
    state: PersistedState,
    today: date,
    transform: RolloverTransform,
) -> tuple[PersistedState, bool]:
    """Return (state, changed). changed=True means the caller must persist."""
    if not is_stale(state, today):
        return state, False
    return PersistedState(last_date=today, tasks=tuple(transform(tuple(state.tasks)))), True
