# src/big_frogs/connectors/matrix_messenger.py

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from nio import AsyncClient, LoginResponse, RoomSendResponse

logger = logging.getLogger(__name__)


def _session_path(store_dir: Path) -> Path:
    # Keep session tokens in a single predictable place under a gitignored local dir.
    return store_dir / "session.json"


def _load_json(path: Path) -> dict[str, Any]:
    val = json.loads(path.read_text("utf-8"))
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Not critical on Windows or restricted FS.
        logger.debug("chmod failed for %s", path, exc_info=True)


async def create_matrix_client(settings) -> AsyncClient | None:
    """
    Create a Matrix AsyncClient used only to post reminders.

    A saved session.json (access token + device id) is reused across restarts;
    the password is needed once, to bootstrap it. Encrypted rooms are not supported.
    """
    homeserver = (getattr(settings, "matrix_homeserver", "") or "").strip()
    user_id = (getattr(settings, "matrix_user_id", "") or "").strip()
    password = (getattr(settings, "matrix_password", "") or "").strip()
    store_dir = Path(getattr(settings, "matrix_store_path", Path(".local/big_frogs/matrix_store")))

    if not homeserver or not user_id:
        logger.error("Matrix is not configured: set BIGFROGS_MATRIX_HOMESERVER and BIGFROGS_MATRIX_USER_ID")
        return None

    store_dir.mkdir(parents=True, exist_ok=True)
    session_file = _session_path(store_dir)
    client = AsyncClient(homeserver, user_id)

    if session_file.exists():
        try:
            data = _load_json(session_file)
            access_token = data.get("access_token")
            sess_user_id = data.get("user_id")
            device_id = data.get("device_id")
            if not access_token or not sess_user_id or not device_id:
                raise ValueError("session.json is missing required fields")

            client.access_token = str(access_token)
            client.user_id = str(sess_user_id)
            client.device_id = str(device_id)
            logger.info("Matrix session restored for %s", client.user_id)
            return client
        except (OSError, ValueError) as e:
            logger.warning("Failed to restore Matrix session.json, will try password login: %r", e)

    if not password:
        logger.error(
            "Matrix session.json not found and password is not set. "
            "Set BIGFROGS_MATRIX_PASSWORD once to bootstrap a session."
        )
        await client.close()
        return None

    device_name = f"{getattr(settings, 'app_name', 'big-frogs')} (Python)"
    logger.info("Logging in to Matrix to bootstrap a new session (device_name=%r)...", device_name)
    resp = await client.login(password=password, device_name=device_name)

    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        await client.close()
        return None

    try:
        _atomic_write_json(
            session_file,
            {"access_token": resp.access_token, "user_id": resp.user_id, "device_id": resp.device_id},
        )
        logger.info("Matrix session saved to %s (user=%s)", session_file, resp.user_id)
    except OSError as e:
        # The client is logged in; we just have to log in again next start.
        logger.error("Failed to write Matrix session.json (%s): %r", session_file, e)

    return client


@dataclass
class MatrixMessenger:
    """OutboundMessenger that posts reminder text into one Matrix room."""

    client: AsyncClient
    room_id: str

    async def send_text(self, *, text: str) -> None:
        resp = await self.client.room_send(
            room_id=self.room_id,
            message_type="m.room.message",
            content={"msgtype": "m.text", "body": text},
        )
        if not isinstance(resp, RoomSendResponse):
            # Raise so the notification loop retries later.
            raise RuntimeError(f"Matrix room_send failed: {resp!r}")
        logger.info("Reminder sent to room %s", self.room_id)

    async def close(self) -> None:
        await self.client.close()
