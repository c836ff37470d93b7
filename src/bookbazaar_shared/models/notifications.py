"""
models/notifications.py — Pydantic models for the notifications and profiles tables.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Notification(BaseModel):
    """Matches the notifications table row."""

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    title: str
    message: str
    is_read: bool = False
    related_transaction_id: UUID | None = None
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Notification":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "title": self.title,
            "message": self.message,
            "is_read": self.is_read,
            "related_transaction_id": (
                str(self.related_transaction_id) if self.related_transaction_id else None
            ),
        }


class Profile(BaseModel):
    """Matches the profiles table row. Owned by the identity provider; read-only here."""

    id: UUID
    username: str | None = None
    avatar_url: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Profile":
        return cls(**row)
