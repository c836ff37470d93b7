"""Order endpoints.

Handlers are plain ``def`` so FastAPI runs them in its threadpool; the
Supabase client and the notification retry backoff both block.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bookbazaar_shared.errors import NotFoundError
from bookbazaar_shared.models import OrderRequest, StatusUpdate

from bookbazaar_api.dependencies import AuthContext, require_auth
from bookbazaar_api.responses import wrap_response
from bookbazaar_api.services import order_service
from bookbazaar_api.services.dashboard_service import order_view

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201)
def place_order(request: OrderRequest, ctx: AuthContext = Depends(require_auth)):
    order = order_service.create_order(ctx, request)
    if order is None:
        raise NotFoundError("Listing not found")
    return wrap_response(order_view(order, ctx.user_id))


@router.get("/{order_id}")
def get_order(order_id: str, ctx: AuthContext = Depends(require_auth)):
    order = order_service.get_order(ctx, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return wrap_response(order_view(order, ctx.user_id))


@router.patch("/{order_id}/status")
def update_status(
    order_id: str,
    update: StatusUpdate,
    ctx: AuthContext = Depends(require_auth),
):
    order = order_service.update_order_status(ctx, order_id, update.status)
    if order is None:
        raise NotFoundError("Order not found")
    return wrap_response(order_view(order, ctx.user_id))
