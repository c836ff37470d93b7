"""
constants.py — shared constants used across the API and the CLI.

Table names, listing categories/conditions, and typed literals are defined
here so routers, services and models stay in sync.
"""

from __future__ import annotations

from typing import Final, Literal

# ---------------------------------------------------------------------------
# Backend tables
# ---------------------------------------------------------------------------
LISTINGS_TABLE: Final[str] = "books"
ORDERS_TABLE: Final[str] = "transactions"
NOTIFICATIONS_TABLE: Final[str] = "notifications"
PROFILES_TABLE: Final[str] = "profiles"

# ---------------------------------------------------------------------------
# Listing vocabulary
# ---------------------------------------------------------------------------
CATEGORIES: Final[tuple[str, ...]] = (
    "Engineering",
    "Arts",
    "Science",
    "Commerce",
    "Competitive Exams",
    "Literature",
    "Other",
)

# Sentinel for "no category filter"
ALL_CATEGORIES: Final[str] = "All"

CONDITIONS: Final[tuple[str, ...]] = ("New", "Like New", "Good", "Fair", "Poor")

DEFAULT_CATEGORY: Final[str] = "Other"
DEFAULT_CONDITION: Final[str] = "Good"

SWAP_LABEL: Final[str] = "Swap"
UNKNOWN_BOOK: Final[str] = "Unknown Book"

# Minimum plausible refresh token length in a stored session
MIN_REFRESH_TOKEN_LENGTH: Final[int] = 20

# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
OrderKind = Literal["purchase", "swap"]
PaymentMethod = Literal["cash", "online"]
OrderRole = Literal["buyer", "seller"]

PAYMENT_METHOD_LABELS: Final[dict[str, str]] = {
    "cash": "Cash on Delivery",
    "online": "Online Payment",
}

NEW_ORDER_TITLE: Final[str] = "New Order Received! 🎉"

ORDER_STATUS_TITLES: Final[dict[str, str]] = {
    "confirmed": "Order Confirmed ✅",
    "completed": "Order Completed 📚",
    "cancelled": "Order Cancelled",
}
