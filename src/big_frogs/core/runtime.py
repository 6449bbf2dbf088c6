# src/big_frogs/core/runtime.py

from __future__ import annotations

import asyncio
import concurrent.futures
import contextlib
import logging
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BackgroundLoop:
    """
    An asyncio event loop running in a daemon thread.

    Why a thread:
    - the console REPL is blocking (input()).
    - the stores, the notifier and the Matrix client are async and share one loop.
    """

    thread: threading.Thread
    loop: asyncio.AbstractEventLoop

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future[T]:
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run(self, coro: Coroutine[Any, Any, T], timeout: float | None = 30.0) -> T:
        """Run coro on the loop and block the calling thread until it finishes."""
        return self.submit(coro).result(timeout=timeout)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future[Any]:
        """Start a long-running coroutine (e.g. a polling loop) as a task on the loop."""

        async def _start() -> asyncio.Task[Any]:
            return asyncio.create_task(coro)

        return self.submit(_start())

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.loop.stop)
        except RuntimeError:
            logger.debug("Background loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_background_loop(name: str = "big-frogs-loop") -> BackgroundLoop:
    ready = threading.Event()
    holder: dict[str, asyncio.AbstractEventLoop] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        holder["loop"] = loop
        ready.set()

        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            with contextlib.suppress(Exception):
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name=name, daemon=True)
    t.start()

    if not ready.wait(timeout=5.0) or "loop" not in holder:
        raise RuntimeError("background event loop did not start")

    logger.debug("Background event loop started (thread=%s).", name)
    return BackgroundLoop(thread=t, loop=holder["loop"])
