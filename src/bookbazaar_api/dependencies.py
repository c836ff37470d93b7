"""Shared FastAPI dependencies."""

from __future__ import annotations

from bookbazaar_api.middleware.auth import AuthContext, get_auth_context, require_auth

__all__ = ["AuthContext", "get_auth_context", "require_auth"]
