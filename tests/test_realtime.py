"""Tests for the live notification feed and its WebSocket endpoint."""

from __future__ import annotations

import asyncio
from unittest.mock import patch
from uuid import uuid4

import pytest
from starlette.websockets import WebSocketDisconnect

from bookbazaar_shared.models import Notification

from bookbazaar_api.middleware.auth import AuthContext
from bookbazaar_api.services.realtime_service import NotificationFeed, extract_record
from tests.conftest import SELLER_ID, make_token


class FakeChannel:
    def __init__(self, name):
        self.name = name
        self.listeners = []
        self.subscribed = False

    def on_postgres_changes(self, event, *, schema, table, filter, callback):
        self.listeners.append(
            {"event": event, "schema": schema, "table": table, "filter": filter, "callback": callback}
        )
        return self

    async def subscribe(self):
        self.subscribed = True
        return self


class FlakyChannel(FakeChannel):
    failures = 1

    async def subscribe(self):
        if FlakyChannel.failures:
            FlakyChannel.failures -= 1
            raise ConnectionError("realtime socket closed")
        return await super().subscribe()


class FakeAsyncClient:
    def __init__(self):
        self.channels = []
        self.removed = []
        self.channel_class = FakeChannel

    def channel(self, name):
        channel = self.channel_class(name)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel):
        self.removed.append(channel)


def _row(user_id=SELLER_ID, **overrides):
    row = {
        "id": str(uuid4()),
        "user_id": user_id,
        "title": "New Order Received! 🎉",
        "message": 'Someone wants to buy "Macbeth" for ₹120. Payment: Cash on Delivery.',
        "is_read": False,
        "related_transaction_id": str(uuid4()),
        "created_at": "2024-07-02T09:30:01+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture()
def ctx():
    return AuthContext(user_id=SELLER_ID, access_token="access-token")


@pytest.fixture()
def fake_client():
    return FakeAsyncClient()


@pytest.fixture()
def factory(fake_client):
    tokens = []

    async def _factory(access_token):
        tokens.append(access_token)
        return fake_client

    _factory.tokens = tokens
    return _factory


class TestExtractRecord:
    def test_new_key(self):
        assert extract_record({"new": {"id": 1}}) == {"id": 1}

    def test_nested_data_record(self):
        assert extract_record({"data": {"record": {"id": 2}}}) == {"id": 2}

    def test_flat_record(self):
        assert extract_record({"record": {"id": 3}}) == {"id": 3}

    def test_unrecognised(self):
        assert extract_record({"old": {"id": 4}}) is None


class TestNotificationFeed:
    @pytest.mark.asyncio
    async def test_subscribes_to_own_inserts(self, ctx, fake_client, factory):
        async with NotificationFeed(ctx, client_factory=factory):
            channel = fake_client.channels[0]
            assert channel.subscribed
            assert channel.name == f"notifications:{SELLER_ID}"
            listener = channel.listeners[0]
            assert listener["event"] == "INSERT"
            assert listener["table"] == "notifications"
            assert listener["filter"] == f"user_id=eq.{SELLER_ID}"

        assert factory.tokens == ["access-token"]
        assert fake_client.removed == [channel]

    @pytest.mark.asyncio
    async def test_retry_reuses_one_client(self, ctx, fake_client, factory, monkeypatch):
        monkeypatch.setattr(FlakyChannel, "failures", 1)
        fake_client.channel_class = FlakyChannel

        async with NotificationFeed(ctx, client_factory=factory):
            failed, live = fake_client.channels
            assert live.subscribed
            assert fake_client.removed == [failed]

        assert factory.tokens == ["access-token"]
        assert fake_client.removed == [failed, live]

    @pytest.mark.asyncio
    async def test_delivers_inserted_rows(self, ctx, fake_client, factory):
        async with NotificationFeed(ctx, client_factory=factory) as feed:
            callback = fake_client.channels[0].listeners[0]["callback"]
            row = _row()
            callback({"new": row})
            notification = await asyncio.wait_for(feed.get(), timeout=1)

        assert isinstance(notification, Notification)
        assert str(notification.id) == row["id"]

    @pytest.mark.asyncio
    async def test_ignores_other_recipients_and_bad_payloads(self, ctx, fake_client, factory):
        async with NotificationFeed(ctx, client_factory=factory) as feed:
            callback = fake_client.channels[0].listeners[0]["callback"]
            callback({"new": _row(user_id=str(uuid4()))})
            callback({"unexpected": True})
            mine = _row()
            callback({"data": {"record": mine}})
            notification = await asyncio.wait_for(feed.get(), timeout=1)

        assert str(notification.id) == mine["id"]

    @pytest.mark.asyncio
    async def test_full_queue_drops_newest(self, ctx, fake_client, factory):
        async with NotificationFeed(ctx, client_factory=factory, max_queued=1) as feed:
            callback = fake_client.channels[0].listeners[0]["callback"]
            first = _row()
            callback({"new": first})
            callback({"new": _row()})
            notification = await asyncio.wait_for(feed.get(), timeout=1)

            assert str(notification.id) == first["id"]
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(feed.get(), timeout=0.05)


class StubFeed:
    """Stands in for NotificationFeed: yields queued rows, then waits forever."""

    pending: list[Notification] = []
    opened_for: list[str] = []

    def __init__(self, ctx):
        StubFeed.opened_for.append(ctx.user_id)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def get(self):
        if StubFeed.pending:
            return StubFeed.pending.pop(0)
        await asyncio.Event().wait()


class TestStreamEndpoint:
    def test_pushes_notifications(self, client):
        row = _row()
        StubFeed.pending = [Notification.from_db_row(row)]
        StubFeed.opened_for = []

        with patch("bookbazaar_api.routers.v1.notifications.NotificationFeed", StubFeed):
            with client.websocket_connect(
                f"/v1/notifications/stream?token={make_token(SELLER_ID)}"
            ) as websocket:
                message = websocket.receive_json()

        assert StubFeed.opened_for == [SELLER_ID]
        assert message["type"] == "notification"
        assert message["data"]["id"] == row["id"]
        assert message["toast"] == {"title": row["title"], "description": row["message"]}

    def test_rejects_missing_token(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/v1/notifications/stream") as websocket:
                websocket.receive_json()
        assert exc_info.value.code == 1008

    def test_rejects_invalid_token(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/v1/notifications/stream?token=bad") as websocket:
                websocket.receive_json()
