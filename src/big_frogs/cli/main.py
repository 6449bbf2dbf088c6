# src/big_frogs/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads both task lists, then:
- starts the reminder delivery loop on the background event loop,
- runs the console REPL in the main thread (optional).
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state, load_stores
from ..config import get_settings
from ..connectors.console_connector import ConsoleMessenger, run_console_loop
from ..core.ports import OutboundMessenger
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..notifications.local_notifier import run_notification_loop

logger = logging.getLogger(__name__)


def _build_messenger(state: AppState) -> OutboundMessenger:
    settings = state.settings
    if not settings.matrix_enabled:
        return ConsoleMessenger()

    from ..connectors.matrix_messenger import MatrixMessenger, create_matrix_client

    if not settings.matrix_room_id:
        logger.error("Matrix is enabled but BIGFROGS_MATRIX_ROOM_ID is empty; reminders go to the console.")
        return ConsoleMessenger()

    try:
        client = state.runtime.run(create_matrix_client(settings), timeout=60.0)
    except Exception:
        logger.exception("Matrix client creation failed; reminders go to the console.")
        return ConsoleMessenger()

    if client is None:
        return ConsoleMessenger()
    return MatrixMessenger(client=client, room_id=settings.matrix_room_id)


def _shutdown(state: AppState, messenger: OutboundMessenger) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    close = getattr(messenger, "close", None)
    if close is not None:
        try:
            state.runtime.run(close(), timeout=10.0)
        except Exception:
            logger.debug("Messenger close failed.", exc_info=True)

    state.runtime.stop()
    state.runtime.join(timeout=10.0)


def main() -> None:
    settings = get_settings()

    setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    load_stores(state)

    messenger = _build_messenger(state)
    state.runtime.spawn(
        run_notification_loop(
            state.notifier,
            messenger,
            interval_seconds=settings.notify_interval_seconds,
        )
    )

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    # Some platforms do not support SIGTERM.
    with contextlib.suppress(ValueError, OSError, AttributeError):
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Delivering reminders only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        _shutdown(state, messenger)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
