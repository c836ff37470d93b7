"""Endpoints scoped to the signed-in user."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bookbazaar_api.dependencies import AuthContext, require_auth
from bookbazaar_api.responses import wrap_response
from bookbazaar_api.services import auth_service, dashboard_service

router = APIRouter(prefix="/me", tags=["me"])


@router.get("")
def whoami(ctx: AuthContext = Depends(require_auth)):
    profile = auth_service.get_profile(ctx)
    return wrap_response(
        {
            "user_id": ctx.user_id,
            "email": ctx.email,
            "username": (profile.username if profile else None) or ctx.username,
            "profile": profile.model_dump(mode="json") if profile else None,
        }
    )


@router.get("/dashboard")
def dashboard(ctx: AuthContext = Depends(require_auth)):
    board = dashboard_service.build_dashboard(ctx)
    return wrap_response(board.to_dict(ctx.user_id))
