"""
models/listings.py — Pydantic models for the books table and the listing wizard.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, ValidationError, computed_field

from bookbazaar_shared.config import settings
from bookbazaar_shared.constants import (
    CATEGORIES,
    CONDITIONS,
    DEFAULT_CATEGORY,
    DEFAULT_CONDITION,
    SWAP_LABEL,
)
from bookbazaar_shared.errors import ListingValidationError

STEP_TITLES: dict[int, str] = {
    1: "Book Details",
    2: "Pricing & Condition",
    3: "Add Photo",
}
LAST_STEP = 3


def format_price(price: Decimal | float | int | None, is_swap: bool) -> str:
    """Render a listing price for display; swap listings never show an amount."""
    if is_swap:
        return SWAP_LABEL
    if price is None:
        return "Price unavailable"
    amount = Decimal(str(price))
    symbol = settings.currency_symbol
    if amount == amount.to_integral_value():
        return f"{symbol}{int(amount):,}"
    return f"{symbol}{amount:,.2f}"


class Listing(BaseModel):
    """Matches the books table row, optionally joined with profiles(username)."""

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    title: str
    author: str
    category: str = DEFAULT_CATEGORY
    condition: str = DEFAULT_CONDITION
    price: Decimal | None = None
    is_swap: bool = False
    description: str | None = None
    image_url: str | None = None
    created_at: datetime | None = None
    username: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def price_label(self) -> str:
        return format_price(self.price, self.is_swap)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Listing":
        data = dict(row)
        profile = data.pop("profiles", None)
        if isinstance(profile, dict) and data.get("username") is None:
            data["username"] = profile.get("username")
        return cls(**data)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "title": self.title,
            "author": self.author,
            "category": self.category,
            "condition": self.condition,
            "price": None if self.is_swap or self.price is None else float(self.price),
            "is_swap": self.is_swap,
            "description": self.description,
            "image_url": self.image_url,
        }


class ListingDraft(BaseModel):
    """
    State of the three-step "add listing" wizard.

    Step 1 collects book details, step 2 pricing and condition, step 3 an
    optional photo. A step cannot be left forward while it has errors.
    """

    step: int = Field(default=1, ge=1, le=LAST_STEP)
    title: str = ""
    author: str = ""
    category: str = DEFAULT_CATEGORY
    description: str = ""
    is_swap: bool = False
    price: Decimal | None = None
    condition: str = DEFAULT_CONDITION

    @classmethod
    def from_form(cls, data: dict[str, Any]) -> "ListingDraft":
        """Build a draft from raw form values, reporting bad values per field."""
        cleaned = {k: v for k, v in data.items() if v is not None}
        if isinstance(cleaned.get("price"), str):
            raw = cleaned["price"].strip()
            if not raw:
                cleaned.pop("price")
            else:
                try:
                    price = Decimal(raw)
                except InvalidOperation:
                    price = None
                if price is None or not price.is_finite():
                    raise ListingValidationError({"price": "Price must be a number."}, step=2)
                cleaned["price"] = price
        try:
            return cls.model_validate(cleaned)
        except ValidationError as exc:
            field_errors = {
                ".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()
            }
            raise ListingValidationError(field_errors) from exc

    @property
    def step_title(self) -> str:
        return STEP_TITLES[self.step]

    def step_errors(self, step: int | None = None) -> dict[str, str]:
        step = self.step if step is None else step
        errors: dict[str, str] = {}
        if step == 1:
            if not self.title.strip():
                errors["title"] = "Title is required."
            if not self.author.strip():
                errors["author"] = "Author is required."
            if self.category not in CATEGORIES:
                errors["category"] = f"Unknown category '{self.category}'."
        elif step == 2:
            if not self.is_swap:
                if self.price is None:
                    errors["price"] = "Price is required unless the book is swap-only."
                elif self.price < 0:
                    errors["price"] = "Price cannot be negative."
            if self.condition not in CONDITIONS:
                errors["condition"] = f"Unknown condition '{self.condition}'."
        return errors

    def advance(self) -> int:
        errors = self.step_errors()
        if errors:
            raise ListingValidationError(errors, step=self.step)
        if self.step < LAST_STEP:
            self.step += 1
        return self.step

    def back(self) -> int:
        self.step = max(1, self.step - 1)
        return self.step

    def validate_all(self) -> None:
        for step in range(1, LAST_STEP + 1):
            errors = self.step_errors(step)
            if errors:
                raise ListingValidationError(errors, step=step)

    def to_insert_dict(self, user_id: str, image_url: str | None = None) -> dict[str, Any]:
        self.validate_all()
        price = None if self.is_swap else self.price
        return {
            "user_id": str(user_id),
            "title": self.title.strip(),
            "author": self.author.strip(),
            "category": self.category,
            "condition": self.condition,
            "price": float(price) if price is not None else None,
            "is_swap": self.is_swap,
            "description": self.description.strip() or None,
            "image_url": image_url,
        }
