"""Auth-aware navigation menu."""

from __future__ import annotations

from typing import Any

from bookbazaar_api.middleware.auth import AuthContext

PRIMARY_LINKS: list[dict[str, str]] = [
    {"label": "Marketplace", "path": "/marketplace"},
    {"label": "Sell a Book", "path": "/add-listing"},
    {"label": "Dashboard", "path": "/dashboard"},
]

SIGNED_IN_ACTIONS: list[dict[str, str]] = [
    {"label": "List a Book", "path": "/add-listing"},
    {"label": "Dashboard", "path": "/dashboard"},
]

SIGNED_OUT_ACTIONS: list[dict[str, str]] = [
    {"label": "Start Selling", "path": "/add-listing"},
    {"label": "Sign In", "path": "/auth"},
]


def build_nav(ctx: AuthContext | None) -> dict[str, Any]:
    return {
        "authenticated": ctx is not None,
        "username": ctx.username if ctx else None,
        "links": PRIMARY_LINKS,
        "actions": SIGNED_IN_ACTIONS if ctx else SIGNED_OUT_ACTIONS,
    }
