"""
errors.py — domain exceptions shared by models, services and the API.

Backend SDK errors (PostgREST, Storage, Auth) are not wrapped here:
the API renders their message verbatim. These classes cover the rules the
application itself enforces.
"""

from __future__ import annotations

from typing import Any


class MarketplaceError(Exception):
    """Base class; carries an error code and the HTTP status to render."""

    code = "MARKETPLACE_ERROR"
    status_code = 400

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ListingValidationError(MarketplaceError):
    code = "INVALID_LISTING"
    status_code = 422

    def __init__(self, field_errors: dict[str, str], *, step: int | None = None) -> None:
        details: dict[str, Any] = {"fields": field_errors}
        if step is not None:
            details["step"] = step
        super().__init__("Please fix the highlighted fields.", details=details)
        self.field_errors = field_errors
        self.step = step


class InvalidTransitionError(MarketplaceError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 409

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move an order from '{current}' to '{target}'.",
            details={"current": current, "target": target},
        )
        self.current = current
        self.target = target


class StatusConflictError(MarketplaceError):
    code = "STATUS_CONFLICT"
    status_code = 409


class PermissionDeniedError(MarketplaceError):
    code = "FORBIDDEN"
    status_code = 403


class AuthUnavailableError(MarketplaceError):
    code = "AUTH_UNAVAILABLE"
    status_code = 503


class ImageTooLargeError(MarketplaceError):
    code = "IMAGE_TOO_LARGE"
    status_code = 413


class NotFoundError(MarketplaceError):
    code = "NOT_FOUND"
    status_code = 404


class AuthRequiredError(MarketplaceError):
    code = "AUTH_REQUIRED"
    status_code = 401