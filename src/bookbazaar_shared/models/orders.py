"""
models/orders.py — Pydantic models for the transactions table and the
order-status state machine.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, StringConstraints

from bookbazaar_shared.constants import UNKNOWN_BOOK, OrderKind, PaymentMethod
from bookbazaar_shared.errors import InvalidTransitionError

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def next_statuses(current: str) -> list[OrderStatus]:
    """Legal targets from ``current``; empty for terminal or unknown values."""
    try:
        status = OrderStatus(current)
    except ValueError:
        return []
    return sorted(ALLOWED_TRANSITIONS[status], key=lambda s: list(OrderStatus).index(s))


def validate_transition(current: str, target: str) -> OrderStatus:
    """
    Check that an order may move from ``current`` to ``target``.

    Both values must be members of OrderStatus. Returns the parsed target.

    Raises:
        InvalidTransitionError: unknown status string or illegal move.
    """
    try:
        current_status = OrderStatus(current)
        target_status = OrderStatus(target)
    except ValueError:
        raise InvalidTransitionError(str(current), str(target)) from None
    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransitionError(current_status.value, target_status.value)
    return target_status


class DeliveryAddress(BaseModel):
    address_line: RequiredText
    city: RequiredText
    state: RequiredText
    pincode: RequiredText
    phone: RequiredText


class OrderRequest(DeliveryAddress):
    """Buyer input for placing an order on a listing."""

    book_id: UUID
    payment_method: PaymentMethod = "cash"


class StatusUpdate(BaseModel):
    status: str


class Order(BaseModel):
    """Matches the transactions table row, optionally joined with books(title, author)."""

    id: UUID = Field(default_factory=uuid4)
    book_id: UUID | None = None
    seller_id: UUID
    buyer_id: UUID
    type: OrderKind = "purchase"
    # Stored as free text by the backend; transitions go through validate_transition.
    status: str = OrderStatus.PENDING.value
    payment_method: PaymentMethod = "cash"
    address_line: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    phone: str | None = None
    book_title: str | None = None
    book_author: str | None = None
    book_price: Decimal | None = None
    seller_notified: bool = True
    created_at: datetime | None = None
    book: dict[str, Any] | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Order":
        data = dict(row)
        data["book"] = data.pop("books", None)
        if data.get("seller_notified") is None:
            data.pop("seller_notified", None)
        return cls(**data)

    @property
    def display_title(self) -> str:
        if self.book_title:
            return self.book_title
        if self.book and self.book.get("title"):
            return self.book["title"]
        return UNKNOWN_BOOK

    @property
    def display_author(self) -> str | None:
        if self.book_author:
            return self.book_author
        if self.book:
            return self.book.get("author")
        return None

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "book_id": str(self.book_id) if self.book_id else None,
            "seller_id": str(self.seller_id),
            "buyer_id": str(self.buyer_id),
            "type": self.type,
            "status": self.status,
            "payment_method": self.payment_method,
            "address_line": self.address_line,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "phone": self.phone,
            "book_title": self.book_title,
            "book_author": self.book_author,
            "book_price": float(self.book_price) if self.book_price is not None else None,
            "seller_notified": self.seller_notified,
        }
