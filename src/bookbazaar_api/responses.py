"""Standardized API response envelopes."""

from __future__ import annotations

from typing import Any


def wrap_response(
    data: Any,
    *,
    total_count: int | None = None,
) -> dict[str, Any]:
    """Build a standardized API response dict."""
    meta = {"total_count": total_count} if total_count is not None else {}
    return {"data": data, "meta": meta, "links": {}}


def error_response(
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a standardized error response dict."""
    err: dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return {"error": err}
