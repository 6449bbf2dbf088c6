# src/big_frogs/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..notifications.local_notifier import LocalNotifier
from ..tasks.task_store import BigFrogStore, DailyTaskStore
from .runtime import BackgroundLoop


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    runtime: BackgroundLoop
    notifier: LocalNotifier
    big_frogs: BigFrogStore
    daily: DailyTaskStore
