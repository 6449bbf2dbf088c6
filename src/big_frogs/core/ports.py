# src/big_frogs/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task stores and the reminder scheduler.

The core depends on Protocols instead of concrete implementations.
This keeps storage and notification delivery swappable and makes testing easier.
"""

from datetime import datetime
from typing import Awaitable, Protocol


class KeyValueStorage(Protocol):
    """
    Opaque asynchronous byte store.

    get() returns None for a missing key. set() returns True on success;
    a failure may be reported either by returning False or by raising.
    """

    def get(self, key: str) -> Awaitable[bytes | None]: ...
    def set(self, key: str, value: bytes) -> Awaitable[bool]: ...


class Notifier(Protocol):
    """One-shot alerts at a wall-clock instant. cancel_all() with nothing pending is a no-op."""

    def request_permission(self) -> Awaitable[bool]: ...

    def schedule_one_shot(self, title: str, body: str, fire_at: datetime) -> Awaitable[str]: ...

    def cancel_all(self) -> Awaitable[None]: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how the local notifier delivers a due alert.

    The connector decides where the text goes (console, a Matrix room, ...).
    """

    def send_text(self, *, text: str) -> Awaitable[None]: ...
