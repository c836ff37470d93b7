"""
Live notification feed over Supabase Realtime.

One channel per open dashboard session, subscribed to INSERT events on the
notifications table filtered by recipient. Rows inserted while no feed is
open are not replayed; they show up on the next full fetch.

Usage:
    async with NotificationFeed(ctx) as feed:
        async for notification in feed:
            await websocket.send_json(notification.model_dump(mode="json"))
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from supabase import AsyncClient

from bookbazaar_shared.constants import NOTIFICATIONS_TABLE
from bookbazaar_shared.db import get_async_supabase_client
from bookbazaar_shared.models import Notification

from bookbazaar_api.middleware.auth import AuthContext
from bookbazaar_api.utils.retry import with_retry

log = structlog.get_logger(__name__)

ClientFactory = Callable[[str], Awaitable[AsyncClient]]


def extract_record(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Pull the inserted row out of a postgres_changes payload."""
    new = payload.get("new")
    if isinstance(new, dict) and new:
        return new
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("record"), dict):
        return data["record"]
    record = payload.get("record")
    return record if isinstance(record, dict) else None


class NotificationFeed:
    def __init__(
        self,
        ctx: AuthContext,
        *,
        client_factory: ClientFactory = get_async_supabase_client,
        max_queued: int = 100,
    ) -> None:
        self._ctx = ctx
        self._client_factory = client_factory
        self._queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=max_queued)
        self._client: AsyncClient | None = None
        self._channel: Any = None
        self._log = log.bind(user_id=ctx.user_id)

    @property
    def channel_name(self) -> str:
        return f"notifications:{self._ctx.user_id}"

    async def __aenter__(self) -> "NotificationFeed":
        self._client = await self._client_factory(self._ctx.access_token)
        await self._subscribe()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._client is not None and self._channel is not None:
            await self._client.remove_channel(self._channel)
        self._channel = None
        self._log.info("notification_feed_closed")

    @with_retry(max_attempts=3, base_delay=1.0)
    async def _subscribe(self) -> None:
        channel = self._client.channel(self.channel_name)
        channel.on_postgres_changes(
            "INSERT",
            schema="public",
            table=NOTIFICATIONS_TABLE,
            filter=f"user_id=eq.{self._ctx.user_id}",
            callback=self._on_insert,
        )
        try:
            await channel.subscribe()
        except Exception:
            await self._client.remove_channel(channel)
            raise
        self._channel = channel
        self._log.info("notification_feed_subscribed", channel=self.channel_name)

    def _on_insert(self, payload: dict[str, Any]) -> None:
        record = extract_record(payload)
        if record is None:
            self._log.warning("notification_payload_unrecognised", keys=sorted(payload))
            return
        notification = Notification.from_db_row(record)
        if str(notification.user_id) != self._ctx.user_id:
            return
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            self._log.warning("notification_feed_full", dropped_id=str(notification.id))

    async def get(self) -> Notification:
        return await self._queue.get()

    def __aiter__(self) -> "NotificationFeed":
        return self

    async def __anext__(self) -> Notification:
        return await self.get()
