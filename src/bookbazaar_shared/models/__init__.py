"""
bookbazaar_shared.models — Pydantic models matching each database table.

These models are used by:
- bookbazaar_api services: validate rows before writing to Supabase
- bookbazaar_api routers and the CLI: serialize rows for display

Row models provide:
  .from_db_row(row: dict) -> Model
  .to_insert_dict() -> dict
"""

from bookbazaar_shared.models.listings import Listing, ListingDraft, format_price
from bookbazaar_shared.models.notifications import Notification, Profile
from bookbazaar_shared.models.orders import (
    ALLOWED_TRANSITIONS,
    DeliveryAddress,
    Order,
    OrderRequest,
    OrderStatus,
    StatusUpdate,
    next_statuses,
    validate_transition,
)

__all__ = [
    "Listing",
    "ListingDraft",
    "format_price",
    "Notification",
    "Profile",
    "Order",
    "OrderRequest",
    "OrderStatus",
    "DeliveryAddress",
    "StatusUpdate",
    "ALLOWED_TRANSITIONS",
    "next_statuses",
    "validate_transition",
]
