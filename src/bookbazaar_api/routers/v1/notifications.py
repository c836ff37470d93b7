"""Notification endpoints, including the live WebSocket feed."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from bookbazaar_shared.errors import NotFoundError
from bookbazaar_shared.models import Notification

from bookbazaar_api.dependencies import AuthContext, require_auth
from bookbazaar_api.middleware.auth import context_from_token
from bookbazaar_api.responses import wrap_response
from bookbazaar_api.services import notification_service
from bookbazaar_api.services.realtime_service import NotificationFeed

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def push_message(notification: Notification) -> dict[str, Any]:
    return {
        "type": "notification",
        "data": notification.model_dump(mode="json"),
        "toast": {"title": notification.title, "description": notification.message},
    }


@router.get("")
def list_notifications(ctx: AuthContext = Depends(require_auth)):
    data = notification_service.fetch_notifications(ctx)
    unread = sum(1 for n in data if not n.is_read)
    return wrap_response(
        {"notifications": [n.model_dump(mode="json") for n in data], "unread_count": unread},
        total_count=len(data),
    )


@router.post("/read-all")
def mark_all_read(ctx: AuthContext = Depends(require_auth)):
    count = notification_service.mark_all_read(ctx)
    return wrap_response({"updated": count})


@router.post("/{notification_id}/read")
def mark_read(notification_id: str, ctx: AuthContext = Depends(require_auth)):
    notification = notification_service.mark_read(ctx, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    return wrap_response(notification.model_dump(mode="json"))


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/stream")
async def notification_stream(websocket: WebSocket, token: str | None = Query(None)):
    """
    Push each newly inserted notification for the caller while connected.

    Browsers cannot set headers on WebSocket requests, so the access token
    travels as a query parameter.
    """
    ctx = context_from_token(token) if token else None
    if ctx is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    log.info("notification_stream_opened", user_id=ctx.user_id)

    async with NotificationFeed(ctx) as feed:
        disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
        try:
            while True:
                next_notification = asyncio.create_task(feed.get())
                done, _ = await asyncio.wait(
                    {next_notification, disconnected},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if disconnected in done:
                    next_notification.cancel()
                    break
                await websocket.send_json(push_message(next_notification.result()))
        except WebSocketDisconnect:
            pass
        finally:
            disconnected.cancel()

    log.info("notification_stream_closed", user_id=ctx.user_id)
