"""
utils/session_store.py — on-disk session file used by the CLI.

The CLI keeps the last sign-in result in a JSON file so subsequent commands
can act as the user. A corrupted or truncated file would make every later
command fail, so it is discarded before use.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from bookbazaar_shared.config import settings
from bookbazaar_shared.constants import MIN_REFRESH_TOKEN_LENGTH

log = structlog.get_logger(__name__)


def _path(path: Path | None) -> Path:
    return path or settings.session_path


def clear_invalid_stored_session(path: Path | None = None) -> bool:
    """
    Delete the stored session if it cannot be used.

    A session is unusable when the file is not JSON, or when its refresh
    token is missing, not a string, or shorter than MIN_REFRESH_TOKEN_LENGTH.
    A JSON list is accepted and its first element inspected.

    Returns:
        True if a file was removed.
    """
    target = _path(path)
    if not target.is_file():
        return False

    try:
        parsed = json.loads(target.read_text(encoding="utf-8"))
        session = parsed[0] if isinstance(parsed, list) and parsed else parsed
        refresh_token = session.get("refresh_token") if isinstance(session, dict) else None
    except (ValueError, OSError):
        refresh_token = None

    if isinstance(refresh_token, str) and len(refresh_token) >= MIN_REFRESH_TOKEN_LENGTH:
        return False

    target.unlink(missing_ok=True)
    log.warning("stored_session_cleared", path=str(target))
    return True


def load_session(path: Path | None = None) -> dict[str, Any] | None:
    target = _path(path)
    clear_invalid_stored_session(target)
    if not target.is_file():
        return None
    parsed = json.loads(target.read_text(encoding="utf-8"))
    return parsed[0] if isinstance(parsed, list) else parsed


def save_session(session: dict[str, Any], path: Path | None = None) -> Path:
    target = _path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(session, indent=2), encoding="utf-8")
    target.chmod(0o600)
    log.debug("stored_session_saved", path=str(target))
    return target


def clear_session(path: Path | None = None) -> None:
    _path(path).unlink(missing_ok=True)
