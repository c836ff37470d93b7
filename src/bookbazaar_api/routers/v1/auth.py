"""Account endpoints backed by Supabase Auth."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from bookbazaar_api.dependencies import AuthContext, require_auth
from bookbazaar_api.responses import wrap_response
from bookbazaar_api.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


class SignUpRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    username: str = Field(min_length=1, max_length=40)


class SignInRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


@router.post("/signup", status_code=201)
def signup(payload: SignUpRequest):
    data = auth_service.sign_up(payload.email, payload.password, payload.username)
    return wrap_response(data)


@router.post("/login")
def login(payload: SignInRequest):
    session = auth_service.sign_in(payload.email, payload.password)
    return wrap_response(session.to_dict())


@router.post("/refresh")
def refresh(payload: RefreshRequest):
    session = auth_service.refresh(payload.refresh_token)
    return wrap_response(session.to_dict())


@router.post("/logout")
def logout(ctx: AuthContext = Depends(require_auth)):
    auth_service.sign_out(ctx)
    return wrap_response({"signed_out": True})
