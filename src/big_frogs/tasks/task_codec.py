# src/big_frogs/tasks/task_codec.py

from __future__ import annotations

"""
JSON codec for PersistedState.

At-rest format (one document per storage key):

    {"lastDate": "2024-05-01" | null, "tasks": [{"id": ..., "text": ..., ...}]}

Decoding is lenient where it is safe to be: a bad lastDate only makes the
state stale, and a broken task record is dropped. A document that is not a
JSON object at all is an error for the caller to handle.
"""

import json
import logging
from datetime import date
from typing import Any

from .task_models import PersistedState, TaskT

logger = logging.getLogger(__name__)


class StateDecodeError(ValueError):
    """Stored bytes could not be decoded into a PersistedState."""


def parse_last_date(raw: Any) -> date | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        logger.warning("Malformed stored lastDate %r; treating state as stale", raw)
        return None


def encode_state(state: PersistedState) -> bytes:
    doc = {
        "lastDate": state.last_date.isoformat() if state.last_date else None,
        "tasks": [t.to_record() for t in state.tasks],
    }
    return json.dumps(doc, ensure_ascii=False).encode("utf-8")


def decode_state(raw: bytes | str, task_type: type[TaskT]) -> PersistedState:
    try:
        doc = json.loads(raw)
    except (TypeError, ValueError, UnicodeDecodeError) as e:
        raise StateDecodeError(f"stored state is not valid JSON: {e}") from e

    if not isinstance(doc, dict):
        raise StateDecodeError("stored state is not a JSON object")

    records = doc.get("tasks") or []
    if not isinstance(records, list):
        logger.warning("Stored 'tasks' is not a list; ignoring it")
        records = []

    tasks: list[TaskT] = []
    for rec in records:
        if not isinstance(rec, dict):
            logger.warning("Skipping non-object task record: %r", rec)
            continue
        try:
            tasks.append(task_type.from_record(rec))
        except ValueError:
            logger.warning("Skipping malformed task record: %r", rec)

    return PersistedState(last_date=parse_last_date(doc.get("lastDate")), tasks=tuple(tasks))
