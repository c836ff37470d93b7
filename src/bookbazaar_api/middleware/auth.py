"""Supabase JWT authentication and the per-request auth context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Request
from jose import JWTError
from jose import jwt as jose_jwt

from bookbazaar_shared.config import settings
from bookbazaar_shared.errors import AuthRequiredError

SIGN_IN_PATH = "/v1/auth/login"


@dataclass(frozen=True)
class AuthContext:
    """
    Identity of the caller for one request.

    Passed explicitly to every service that reads or writes user data; the
    access token is forwarded to Supabase so row-level security applies.
    """

    user_id: str
    access_token: str
    email: str | None = None
    username: str | None = None


def _validate_jwt(token: str) -> dict[str, Any] | None:
    """Validate a Supabase JWT and return its claims."""
    try:
        return jose_jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
        )
    except JWTError:
        return None


def context_from_token(token: str) -> AuthContext | None:
    """Build an AuthContext from a bearer token, or None if it is invalid."""
    claims = _validate_jwt(token)
    if claims is None or not claims.get("sub"):
        return None
    metadata = claims.get("user_metadata") or {}
    return AuthContext(
        user_id=claims["sub"],
        access_token=token,
        email=claims.get("email"),
        username=metadata.get("username"),
    )


def auth_required_error(message: str = "Please sign in to continue.") -> AuthRequiredError:
    return AuthRequiredError(message, details={"sign_in": SIGN_IN_PATH})


async def get_auth_context(request: Request) -> AuthContext | None:
    """Extract the caller from the Authorization header.

    Returns None if no credentials are provided (public access).
    Raises 401 if a bearer token is present but invalid or expired.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    ctx = context_from_token(auth_header[7:])
    if ctx is None:
        raise auth_required_error("Invalid or expired token. Please sign in again.")
    request.state.user = ctx
    return ctx


async def require_auth(
    ctx: AuthContext | None = Depends(get_auth_context),
) -> AuthContext:
    """Dependency for action-gated endpoints; anonymous callers get 401."""
    if ctx is None:
        raise auth_required_error()
    return ctx
