"""Notification data service: compose, deliver (with retry), list, mark read."""

from __future__ import annotations

import httpx
import structlog
from postgrest.exceptions import APIError
from supabase import Client

from bookbazaar_shared.config import settings
from bookbazaar_shared.constants import (
    NEW_ORDER_TITLE,
    NOTIFICATIONS_TABLE,
    ORDER_STATUS_TITLES,
    PAYMENT_METHOD_LABELS,
)
from bookbazaar_shared.db import get_user_client
from bookbazaar_shared.models import Notification, Order, format_price

from bookbazaar_api.middleware.auth import AuthContext
from bookbazaar_api.utils.retry import call_with_retry

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def new_order_notification(order: Order) -> Notification:
    """Message telling the seller that a buyer placed ``order``."""
    payment = PAYMENT_METHOD_LABELS.get(order.payment_method, order.payment_method)
    if order.type == "swap":
        message = f'Someone wants to swap for "{order.display_title}". Payment: {payment}.'
    else:
        price = format_price(order.book_price, is_swap=False)
        message = f'Someone wants to buy "{order.display_title}" for {price}. Payment: {payment}.'
    return Notification(
        user_id=order.seller_id,
        title=NEW_ORDER_TITLE,
        message=message,
        related_transaction_id=order.id,
    )


def status_change_notification(order: Order) -> Notification:
    """Message telling the buyer that the seller moved ``order`` to a new status."""
    return Notification(
        user_id=order.buyer_id,
        title=ORDER_STATUS_TITLES.get(order.status, "Order Updated"),
        message=f'Your order for "{order.display_title}" is now {order.status}.',
        related_transaction_id=order.id,
    )


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


def _insert(supabase: Client, notification: Notification) -> Notification:
    result = supabase.table(NOTIFICATIONS_TABLE).insert(notification.to_insert_dict()).execute()
    return Notification.from_db_row(result.data[0]) if result.data else notification


def deliver(supabase: Client, notification: Notification) -> Notification | None:
    """
    Insert a notification, retrying with exponential backoff.

    Returns:
        The stored notification, or None once attempts are exhausted. The
        caller decides how to record the missed delivery.
    """
    try:
        stored = call_with_retry(
            _insert,
            supabase,
            notification,
            max_attempts=settings.notification_retry_attempts,
            base_delay=settings.notification_retry_base_delay,
            retry_on=(APIError, httpx.HTTPError),
        )
    except (APIError, httpx.HTTPError) as exc:
        log.error(
            "notification_degraded",
            recipient_id=str(notification.user_id),
            related_transaction_id=str(notification.related_transaction_id),
            error=str(exc),
        )
        return None
    log.info(
        "notification_sent",
        notification_id=str(stored.id),
        recipient_id=str(stored.user_id),
    )
    return stored


# ---------------------------------------------------------------------------
# Recipient operations
# ---------------------------------------------------------------------------


def fetch_notifications(ctx: AuthContext) -> list[Notification]:
    supabase = get_user_client(ctx.access_token)
    result = (
        supabase.table(NOTIFICATIONS_TABLE)
        .select("*")
        .eq("user_id", ctx.user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [Notification.from_db_row(row) for row in result.data or []]


def mark_read(ctx: AuthContext, notification_id: str) -> Notification | None:
    supabase = get_user_client(ctx.access_token)
    result = (
        supabase.table(NOTIFICATIONS_TABLE)
        .update({"is_read": True})
        .eq("id", notification_id)
        .eq("user_id", ctx.user_id)
        .execute()
    )
    return Notification.from_db_row(result.data[0]) if result.data else None


def mark_all_read(ctx: AuthContext) -> int:
    supabase = get_user_client(ctx.access_token)
    result = (
        supabase.table(NOTIFICATIONS_TABLE)
        .update({"is_read": True})
        .eq("user_id", ctx.user_id)
        .eq("is_read", False)
        .execute()
    )
    count = len(result.data or [])
    log.info("notifications_marked_read", user_id=ctx.user_id, count=count)
    return count
