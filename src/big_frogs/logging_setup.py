# src/big_frogs/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

LOG_FILE_NAME = "big_frogs.log"

# Console threshold per logger-name prefix; the longest matching prefix wins.
# The notification loop delivers through the Matrix messenger in the
# background, so its INFO lines would land in the middle of the prompt.
CONSOLE_LEVELS: dict[str, int] = {
    "big_frogs": logging.NOTSET,
    "big_frogs.connectors.matrix_messenger": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """Loggers not covered by `levels` (nio, py.warnings, ...) reach the console at `default`+ only."""

    def __init__(self, levels: Mapping[str, int] | None = None, default: int = logging.ERROR) -> None:
        super().__init__()
        self._levels = dict(CONSOLE_LEVELS if levels is None else levels)
        self._default = default

    def threshold(self, name: str) -> int:
        best: str | None = None
        for prefix in self._levels:
            if name == prefix or name.startswith(prefix + "."):
                if best is None or len(prefix) > len(best):
                    best = prefix
        return self._default if best is None else self._levels[best]

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.threshold(record.name)


def level_from_name(name: str | int | None, default: int = logging.INFO) -> int:
    """'debug' / 'WARNING' / 10 -> logging level; unknown names fall back to default."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/big_frogs",
    console_level: int | str = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logs to a filtered stderr handler and to <log_dir>/big_frogs.log.

    The file gets everything at file_level, including third-party loggers.
    Call once, before the first log line; calling again replaces the handlers.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level_from_name(console_level))
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    # nio logs every sync response at DEBUG.
    logging.getLogger("nio").setLevel(logging.INFO)
    return log_file
