# src/big_frogs/tasks/task_store.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Generic

from ..core.ports import KeyValueStorage
from .reminder_scheduler import ReminderScheduler
from .rollover import RolloverTransform, apply_rollover, carry_over_frogs, reset_daily
from .task_codec import StateDecodeError, decode_state, encode_state
from .task_models import DailyTask, FrogTask, PersistedState, TaskT, coerce_priority

logger = logging.getLogger(__name__)

BIG_FROGS_KEY = "@big_frogs_tasks"
DAILY_TASKS_KEY = "@daily_tasks"


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True, slots=True)
class StoreResult(Generic[TaskT]):
    """
    Outcome of a store command.

    tasks is always the presented view after the command. On failure
    (ok=False) it is the view from before the command: nothing that failed
    to persist is ever presented.
    """

    ok: bool
    tasks: tuple[TaskT, ...]
    error: str | None = None
    rolled_over: bool = False


class RolloverTaskStore(Generic[TaskT]):
    """
    A task collection persisted as one PersistedState document under one key.

    The store owns its state exclusively. Commands are read-modify-write with
    no locking: callers are expected to issue one command at a time.

    Subclasses choose the task type, the rollover transform and the
    presentation order.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str,
        task_type: type[TaskT],
        transform: RolloverTransform,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._storage = storage
        self._key = key
        self._task_type = task_type
        self._transform = transform
        self._clock = clock

        self._state = PersistedState.empty()
        self._view: tuple[TaskT, ...] = ()
        self._loaded = False
        self._last_id_ms = 0

    @property
    def key(self) -> str:
        return self._key

    @property
    def tasks(self) -> tuple[TaskT, ...]:
        return self._view

    @property
    def loaded(self) -> bool:
        return self._loaded

    def present(self, tasks: Iterable[TaskT]) -> tuple[TaskT, ...]:
        return tuple(tasks)

    def _today(self) -> date:
        return self._clock().date()

    # ---- persistence helpers ----

    async def _read_state(self) -> PersistedState:
        try:
            raw = await self._storage.get(self._key)
        except Exception:
            logger.exception("Storage read failed key=%s; starting from empty state", self._key)
            return PersistedState.empty()

        if raw is None:
            return PersistedState.empty()

        try:
            return decode_state(raw, self._task_type)
        except StateDecodeError:
            logger.exception("Stored state under key=%s is unreadable; starting from empty state", self._key)
            return PersistedState.empty()

    async def _write_state(self, state: PersistedState) -> str | None:
        """Persist state; return an error description, or None on success."""
        try:
            ok = await self._storage.set(self._key, encode_state(state))
        except Exception as e:
            logger.exception("Storage write failed key=%s", self._key)
            return f"{type(e).__name__}: {e}"

        if not ok:
            logger.error("Storage rejected write key=%s", self._key)
            return "storage rejected the write"
        return None

    def _accept(self, state: PersistedState) -> None:
        self._state = state
        self._view = self.present(state.tasks)
        self._loaded = True

    def _result(self, ok: bool, error: str | None = None, rolled_over: bool = False) -> StoreResult[TaskT]:
        return StoreResult(ok=ok, tasks=self._view, error=error, rolled_over=rolled_over)

    async def _finish(self, result: StoreResult[TaskT]) -> StoreResult[TaskT]:
        """Hook run after every load/add/toggle."""
        return result

    async def _ensure_loaded(self) -> bool:
        """
        Make the in-memory state current for today before a mutation.

        Reloads when nothing was loaded yet or the day changed since the last
        load/commit, so a long-running process still rolls over at midnight.
        Returns False when the state could not be loaded; mutating then would
        overwrite the stored tasks with a partial collection.
        """
        if not self._loaded or self._state.last_date != self._today():
            await self.load()
        return self._loaded and self._state.last_date == self._today()

    async def _not_loaded(self) -> StoreResult[TaskT]:
        logger.warning("Mutation refused key=%s: state for today is not loaded", self._key)
        return await self._finish(self._result(False, "state not loaded"))

    async def _commit(self, tasks: Iterable[TaskT]) -> StoreResult[TaskT]:
        state = PersistedState(last_date=self._today(), tasks=tuple(tasks))
        error = await self._write_state(state)
        if error is not None:
            return await self._finish(self._result(False, error))
        self._accept(state)
        return await self._finish(self._result(True))

    def _new_id(self) -> str:
        existing = {t.id for t in self._state.tasks}
        candidate = max(int(time.time() * 1000), self._last_id_ms + 1)
        while str(candidate) in existing:
            candidate += 1
        self._last_id_ms = candidate
        return str(candidate)

    # ---- public API ----

    async def load(self) -> StoreResult[TaskT]:
        """
        Read the stored state and roll it over if it belongs to an earlier day.

        A rolled-over state is written back before it is presented, so a
        second load on the same day changes nothing.
        """
        stored = await self._read_state()
        state, changed = apply_rollover(stored, self._today(), self._transform)

        if changed:
            logger.info(
                "Rollover key=%s last_date=%s -> %s tasks=%d -> %d",
                self._key,
                stored.last_date,
                state.last_date,
                len(stored.tasks),
                len(state.tasks),
            )
            error = await self._write_state(state)
            if error is not None:
                return await self._finish(self._result(False, error))

        self._accept(state)
        logger.debug("Loaded key=%s tasks=%d", self._key, len(state.tasks))
        return await self._finish(self._result(True, rolled_over=changed))

    async def toggle(self, task_id: str) -> StoreResult[TaskT]:
        """Flip completed on the task with task_id. Unknown ids leave the tasks unchanged."""
        if not await self._ensure_loaded():
            return await self._not_loaded()

        task_id = str(task_id)
        found = False
        updated: list[TaskT] = []
        for t in self._state.tasks:
            if t.id == task_id:
                found = True
                updated.append(replace(t, completed=not t.completed))
            else:
                updated.append(t)

        if not found:
            logger.debug("Toggle: no task id=%s in key=%s", task_id, self._key)

        return await self._commit(updated)

    async def _append(self, task: TaskT) -> StoreResult[TaskT]:
        result = await self._commit((*self._state.tasks, task))
        if result.ok:
            logger.debug("Task added key=%s id=%s", self._key, task.id)
        return result


class BigFrogStore(RolloverTaskStore[FrogTask]):
    """High-priority tasks. Unfinished frogs carry over to the next day at priority 1."""

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = BIG_FROGS_KEY,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        super().__init__(storage, key=key, task_type=FrogTask, transform=carry_over_frogs, clock=clock)

    def present(self, tasks: Iterable[FrogTask]) -> tuple[FrogTask, ...]:
        # sorted() is stable: equal priorities keep their relative order.
        return tuple(sorted(tasks, key=lambda t: t.priority))

    async def add(self, text: str, priority: Any = 1) -> StoreResult[FrogTask]:
        text = (text or "").strip()
        if not text:
            return await self._finish(self._result(True))
        if not await self._ensure_loaded():
            return await self._not_loaded()
        task = FrogTask(id=self._new_id(), text=text, priority=coerce_priority(priority))
        return await self._append(task)


class DailyTaskStore(RolloverTaskStore[DailyTask]):
    """
    Recurring tasks. A new day resets completion, never removes tasks.

    After every command the evening reminder is recomputed from the
    presented collection.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = DAILY_TASKS_KEY,
        reminders: ReminderScheduler | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        super().__init__(storage, key=key, task_type=DailyTask, transform=reset_daily, clock=clock)
        self._reminders = reminders
        self._next_reminder: datetime | None = None

    @property
    def next_reminder(self) -> datetime | None:
        return self._next_reminder

    async def _finish(self, result: StoreResult[DailyTask]) -> StoreResult[DailyTask]:
        if self._reminders is not None:
            self._next_reminder = await self._reminders.reschedule(result.tasks)
        return result

    async def add(self, text: str) -> StoreResult[DailyTask]:
        text = (text or "").strip()
        if not text:
            return await self._finish(self._result(True))
        if not await self._ensure_loaded():
            return await self._not_loaded()
        return await self._append(DailyTask(id=self._new_id(), text=text))
