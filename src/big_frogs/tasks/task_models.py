# src/big_frogs/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, TypeVar


def _coerce_id(raw: Any) -> str:
    if raw is None or str(raw).strip() == "":
        raise ValueError("task record has no id")
    return str(raw)


def coerce_priority(raw: Any) -> int:
    """Priority is an integer >= 1; anything else becomes 1."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 1
    return value if value >= 1 else 1


_TRUE_STRINGS = frozenset({"1", "true", "yes", "y", "on"})


def coerce_completed(raw: Any) -> bool:
    """Booleans pass through; strings count only when they spell a true value ("false" is False)."""
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return False
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUE_STRINGS
    return bool(raw)


@dataclass(frozen=True, slots=True)
class FrogTask:
    id: str
    text: str
    priority: int = 1
    completed: bool = False

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "priority": self.priority,
            "completed": self.completed,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> FrogTask:
        return cls(
            id=_coerce_id(record.get("id")),
            text=str(record.get("text") or ""),
            priority=coerce_priority(record.get("priority", 1)),
            completed=coerce_completed(record.get("completed")),
        )


@dataclass(frozen=True, slots=True)
class DailyTask:
    id: str
    text: str
    completed: bool = False

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> DailyTask:
        return cls(
            id=_coerce_id(record.get("id")),
            text=str(record.get("text") or ""),
            completed=coerce_completed(record.get("completed")),
        )


TaskT = TypeVar("TaskT", FrogTask, DailyTask)


@dataclass(frozen=True, slots=True)
class PersistedState:
    """
    The unit of storage under one key.

    last_date is the calendar day on which the tasks were last written or
    rolled over; None means "never", which always counts as stale.
    """

    last_date: date | None = None
    tasks: tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> PersistedState:
        return cls(last_date=None, tasks=())
