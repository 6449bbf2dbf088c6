# src/big_frogs/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import time
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "BIGFROGS"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def parse_clock_time(raw: str | None, default: time) -> time:
    """Parse "HH:MM"; anything else falls back to default."""
    if not raw or not raw.strip():
        return default
    try:
        hh, mm = raw.strip().split(":", 1)
        return time(int(hh), int(mm))
    except ValueError:
        logger.warning("Invalid clock time %r; using %s", raw, default.strftime("%H:%M"))
        return default


def _system_zone_name() -> str:
    """IANA name of the host zone from TZ or the /etc/localtime link; "" when unknown."""
    raw = os.getenv("TZ", "").strip().lstrip(":")
    if raw:
        return raw
    target = os.path.realpath("/etc/localtime")
    marker = "zoneinfo/"
    if marker in target:
        return target.split(marker, 1)[1]
    return ""


def resolve_timezone(name: str | None) -> ZoneInfo | None:
    """
    Named zone for "today" and the reminder time.

    An empty name falls back to the host zone. None means no named zone could
    be found; callers then use the fixed offset of datetime.now().astimezone().
    """
    name = (name or "").strip() or _system_zone_name()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone %r; using the system offset", name)
        return None


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- Storage keys ----
    big_frogs_key: str
    daily_key: str

    # ---- Calendar ----
    timezone: str

    # ---- Daily reminder ----
    reminder_time: time
    reminder_title: str
    reminder_body: str
    notifications_enabled: bool
    notify_interval_seconds: float

    # ---- Connector flags ----
    console_enabled: bool
    matrix_enabled: bool

    # ---- Matrix (reminder delivery) ----
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_room_id: str
    matrix_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "big-frogs")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/big_frogs"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "big_frogs.sqlite3")

        big_frogs_key = _env(_k("BIG_FROGS_KEY"), "@big_frogs_tasks")
        daily_key = _env(_k("DAILY_KEY"), "@daily_tasks")

        timezone = _env(_k("TIMEZONE")).strip()

        reminder_time = parse_clock_time(os.getenv(_k("REMINDER_TIME")), time(21, 0))
        reminder_title = _env(_k("REMINDER_TITLE"), "Daily tasks")
        reminder_body = _env(_k("REMINDER_BODY"), "You still have unfinished daily tasks today.")
        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)
        notify_interval_seconds = _env_float(_k("NOTIFY_INTERVAL_SECONDS"), 15.0)

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)

        matrix_homeserver = _env(_k("MATRIX_HOMESERVER")).strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID")).strip()
        matrix_password = _env(_k("MATRIX_PASSWORD")).strip()
        matrix_room_id = _env(_k("MATRIX_ROOM_ID")).strip()
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            big_frogs_key=big_frogs_key,
            daily_key=daily_key,
            timezone=timezone,
            reminder_time=reminder_time,
            reminder_title=reminder_title,
            reminder_body=reminder_body,
            notifications_enabled=notifications_enabled,
            notify_interval_seconds=notify_interval_seconds,
            console_enabled=console_enabled,
            matrix_enabled=matrix_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_room_id=matrix_room_id,
            matrix_store_path=matrix_store_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
