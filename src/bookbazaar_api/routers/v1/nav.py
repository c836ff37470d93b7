from __future__ import annotations

from fastapi import APIRouter, Depends

from bookbazaar_api.dependencies import AuthContext, get_auth_context
from bookbazaar_api.responses import wrap_response
from bookbazaar_api.services.nav_service import build_nav

router = APIRouter(prefix="/nav", tags=["nav"])


@router.get("")
async def navigation(ctx: AuthContext | None = Depends(get_auth_context)):
    return wrap_response(build_nav(ctx))
