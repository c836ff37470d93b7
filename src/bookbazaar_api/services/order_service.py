"""Order data service: placement, status transitions, and the seller-notification outbox."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from postgrest.exceptions import APIError
from supabase import Client

from bookbazaar_shared.constants import ORDERS_TABLE
from bookbazaar_shared.db import get_supabase_client, get_user_client
from bookbazaar_shared.errors import PermissionDeniedError, StatusConflictError
from bookbazaar_shared.models import Order, OrderRequest, OrderStatus, validate_transition

from bookbazaar_api.middleware.auth import AuthContext
from bookbazaar_api.services import listing_service, notification_service

log = structlog.get_logger(__name__)

ORDER_WITH_BOOK = "*, books(title, author)"


def _notify_seller(supabase: Client, order: Order) -> Order:
    """
    Send the seller's "new order" notification and flag the order.

    When delivery fails after retries the order stays seller_notified=False
    for flush_pending_notifications() to pick up; it is never rolled back.
    """
    sent = notification_service.deliver(supabase, notification_service.new_order_notification(order))
    if sent is None:
        return order

    try:
        supabase.table(ORDERS_TABLE).update({"seller_notified": True}).eq("id", str(order.id)).execute()
    except (APIError, httpx.HTTPError) as exc:
        # The notification exists; a later flush may send it again.
        log.warning("outbox_flag_failed", order_id=str(order.id), error=str(exc))
    return order.model_copy(update={"seller_notified": True})


def create_order(ctx: AuthContext, request: OrderRequest) -> Order | None:
    """
    Place a pending order on a listing and notify its seller.

    The order row carries a snapshot of the book so it stays readable after
    the listing is deleted.

    Returns:
        The order, or None if the listing does not exist.

    Raises:
        PermissionDeniedError: the caller owns the listing.
    """
    listing = listing_service.get_listing(str(request.book_id))
    if listing is None:
        return None
    if str(listing.user_id) == ctx.user_id:
        raise PermissionDeniedError("You cannot order your own listing.")

    order = Order(
        book_id=listing.id,
        seller_id=listing.user_id,
        buyer_id=ctx.user_id,
        type="swap" if listing.is_swap else "purchase",
        status=OrderStatus.PENDING.value,
        payment_method=request.payment_method,
        address_line=request.address_line,
        city=request.city,
        state=request.state,
        pincode=request.pincode,
        phone=request.phone,
        book_title=listing.title,
        book_author=listing.author,
        book_price=None if listing.is_swap else listing.price,
        seller_notified=False,
    )

    supabase = get_user_client(ctx.access_token)
    result = supabase.table(ORDERS_TABLE).insert(order.to_insert_dict()).execute()
    order = Order.from_db_row(result.data[0])
    log.info(
        "order_created",
        order_id=str(order.id),
        book_id=str(order.book_id),
        buyer_id=ctx.user_id,
        seller_id=str(order.seller_id),
        payment_method=order.payment_method,
    )
    return _notify_seller(supabase, order)


def get_order(ctx: AuthContext, order_id: str, *, supabase: Client | None = None) -> Order | None:
    """Fetch an order the caller is buyer or seller of."""
    supabase = supabase or get_user_client(ctx.access_token)
    result = (
        supabase.table(ORDERS_TABLE)
        .select(ORDER_WITH_BOOK)
        .eq("id", order_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    order = Order.from_db_row(result.data[0])
    if ctx.user_id not in (str(order.buyer_id), str(order.seller_id)):
        return None
    return order


def fetch_user_orders(ctx: AuthContext) -> list[Order]:
    """Orders where the caller is buyer or seller, newest first."""
    supabase = get_user_client(ctx.access_token)
    result = (
        supabase.table(ORDERS_TABLE)
        .select(ORDER_WITH_BOOK)
        .or_(f"seller_id.eq.{ctx.user_id},buyer_id.eq.{ctx.user_id}")
        .order("created_at", desc=True)
        .execute()
    )
    return [Order.from_db_row(row) for row in result.data or []]


def update_order_status(ctx: AuthContext, order_id: str, target: str) -> Order | None:
    """
    Move an order to ``target`` if the transition is legal.

    The write only applies while the stored status still equals the one that
    was validated, so two concurrent updates cannot both succeed.

    Returns:
        The updated order, or None if the caller cannot see it.

    Raises:
        PermissionDeniedError: the caller is not the seller.
        InvalidTransitionError: unknown status or illegal move.
        StatusConflictError: the status changed between read and write.
    """
    supabase = get_user_client(ctx.access_token)
    order = get_order(ctx, order_id, supabase=supabase)
    if order is None:
        return None
    if str(order.seller_id) != ctx.user_id:
        raise PermissionDeniedError("Only the seller can update this order.")

    new_status = validate_transition(order.status, target)

    result = (
        supabase.table(ORDERS_TABLE)
        .update({"status": new_status.value})
        .eq("id", order_id)
        .eq("status", order.status)
        .execute()
    )
    if not result.data:
        raise StatusConflictError(
            "The order changed while you were updating it. Refresh and try again.",
            details={"expected": order.status, "target": new_status.value},
        )

    updated = Order.from_db_row(result.data[0]).model_copy(update={"book": order.book})
    log.info(
        "order_status_changed",
        order_id=order_id,
        actor_id=ctx.user_id,
        from_status=order.status,
        to_status=new_status.value,
    )
    notification_service.deliver(supabase, notification_service.status_change_notification(updated))
    return updated


def flush_pending_notifications() -> dict[str, Any]:
    """
    Re-send seller notifications for orders still flagged seller_notified=False.

    Runs with the service role so it can see every order.
    """
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table(ORDERS_TABLE)
        .select("*")
        .eq("seller_notified", False)
        .order("created_at")
        .execute()
    )
    rows = result.data or []
    delivered = 0
    for row in rows:
        order = _notify_seller(supabase, Order.from_db_row(row))
        if order.seller_notified:
            delivered += 1

    summary = {"checked": len(rows), "delivered": delivered, "failed": len(rows) - delivered}
    log.info("outbox_flushed", **summary)
    return summary
