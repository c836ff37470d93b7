"""Dashboard aggregation: the caller's listings, orders, notifications, and totals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from bookbazaar_shared.constants import OrderRole
from bookbazaar_shared.models import Listing, Notification, Order, OrderStatus, next_statuses

from bookbazaar_api.middleware.auth import AuthContext
from bookbazaar_api.services import listing_service, notification_service, order_service

log = structlog.get_logger(__name__)


def order_view(order: Order, user_id: str) -> dict[str, Any]:
    """Order as seen by one participant, with the actions open to them."""
    role: OrderRole = "seller" if str(order.seller_id) == user_id else "buyer"
    data = order.model_dump(mode="json", exclude={"book"})
    data.update(
        role=role,
        book_title=order.display_title,
        book_author=order.display_author,
        allowed_actions=[s.value for s in next_statuses(order.status)] if role == "seller" else [],
    )
    return data


@dataclass
class DashboardSummary:
    listing_count: int = 0
    purchase_count: int = 0
    sale_count: int = 0
    pending_sale_count: int = 0
    unread_count: int = 0

    @classmethod
    def compute(
        cls,
        user_id: str,
        listings: list[Listing],
        orders: list[Order],
        notifications: list[Notification],
    ) -> "DashboardSummary":
        # Recomputed from the fetched rows on every call
        sales = [o for o in orders if str(o.seller_id) == user_id]
        return cls(
            listing_count=len(listings),
            purchase_count=sum(1 for o in orders if str(o.buyer_id) == user_id),
            sale_count=len(sales),
            pending_sale_count=sum(1 for o in sales if o.status == OrderStatus.PENDING.value),
            unread_count=sum(1 for n in notifications if not n.is_read),
        )


@dataclass
class Dashboard:
    summary: DashboardSummary
    listings: list[Listing] = field(default_factory=list)
    orders: list[Order] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)

    def to_dict(self, user_id: str) -> dict[str, Any]:
        return {
            "summary": self.summary.__dict__,
            "listings": [listing.model_dump(mode="json") for listing in self.listings],
            "orders": [order_view(order, user_id) for order in self.orders],
            "notifications": [n.model_dump(mode="json") for n in self.notifications],
        }


def build_dashboard(ctx: AuthContext) -> Dashboard:
    listings = listing_service.fetch_user_listings(ctx)
    orders = order_service.fetch_user_orders(ctx)
    notifications = notification_service.fetch_notifications(ctx)
    summary = DashboardSummary.compute(ctx.user_id, listings, orders, notifications)
    log.debug("dashboard_built", user_id=ctx.user_id, **summary.__dict__)
    return Dashboard(
        summary=summary,
        listings=listings,
        orders=orders,
        notifications=notifications,
    )
