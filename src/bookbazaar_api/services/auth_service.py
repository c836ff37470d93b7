"""Account and session operations against Supabase Auth."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any

import httpx
import structlog
from supabase import Client
from supabase_auth.errors import AuthError, AuthRetryableError

from bookbazaar_shared.constants import PROFILES_TABLE
from bookbazaar_shared.db import get_user_client, new_anon_client
from bookbazaar_shared.errors import AuthUnavailableError
from bookbazaar_shared.models import Profile

from bookbazaar_api.middleware.auth import AuthContext

log = structlog.get_logger(__name__)

FETCH_FAILURE = re.compile(r"failed to fetch|fetch failed", re.IGNORECASE)
NETWORK_MESSAGE = "Network/auth session issue. Please try again."


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: int | None
    user_id: str
    email: str | None = None
    username: str | None = None

    @classmethod
    def from_response(cls, response: Any) -> "AuthSession":
        session = response.session
        if session is None:
            raise AuthUnavailableError("Sign-in did not return a session.")
        user = response.user or session.user
        metadata = getattr(user, "user_metadata", None) or {}
        return cls(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
            user_id=str(user.id),
            email=user.email,
            username=metadata.get("username"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def is_fetch_failure(exc: BaseException) -> bool:
    """True for transport-level failures, the only sign-in errors worth a retry."""
    if isinstance(exc, (httpx.TransportError, AuthRetryableError)):
        return True
    return bool(FETCH_FAILURE.search(str(exc)))


def _clear_local_session(client: Client) -> None:
    try:
        client.auth.sign_out({"scope": "local"})
    except (AuthError, httpx.HTTPError) as exc:
        log.debug("local_session_clear_failed", error=str(exc))


def sign_up(email: str, password: str, username: str) -> dict[str, Any]:
    client = new_anon_client()
    response = client.auth.sign_up(
        {
            "email": email,
            "password": password,
            "options": {"data": {"username": username}},
        }
    )
    user = response.user
    log.info("signed_up", user_id=str(user.id) if user else None)
    return {
        "user_id": str(user.id) if user else None,
        "email": email,
        "username": username,
        "confirmation_required": response.session is None,
    }


def sign_in(email: str, password: str, *, client: Client | None = None) -> AuthSession:
    """
    Sign in with email and password.

    Any local session left on the client is cleared first. A transport-level
    failure is retried exactly once after clearing the local session again;
    every other failure is raised as-is.

    Raises:
        AuthUnavailableError: the fetch failure persisted.
        AuthError: credentials rejected (message surfaced verbatim).
    """
    client = client or new_anon_client()
    _clear_local_session(client)

    credentials = {"email": email, "password": password}
    try:
        response = client.auth.sign_in_with_password(credentials)
    except (AuthError, httpx.HTTPError) as exc:
        if not is_fetch_failure(exc):
            raise
        log.warning("sign_in_retry", error=str(exc))
        _clear_local_session(client)
        try:
            response = client.auth.sign_in_with_password(credentials)
        except (AuthError, httpx.HTTPError) as retry_exc:
            if is_fetch_failure(retry_exc):
                raise AuthUnavailableError(NETWORK_MESSAGE) from retry_exc
            raise

    session = AuthSession.from_response(response)
    log.info("signed_in", user_id=session.user_id)
    return session


def sign_out(ctx: AuthContext) -> None:
    client = new_anon_client()
    client.auth.admin.sign_out(ctx.access_token)
    log.info("signed_out", user_id=ctx.user_id)


def refresh(refresh_token: str) -> AuthSession:
    client = new_anon_client()
    response = client.auth.refresh_session(refresh_token)
    return AuthSession.from_response(response)


def get_profile(ctx: AuthContext) -> Profile | None:
    supabase = get_user_client(ctx.access_token)
    result = (
        supabase.table(PROFILES_TABLE)
        .select("*")
        .eq("id", ctx.user_id)
        .limit(1)
        .execute()
    )
    return Profile.from_db_row(result.data[0]) if result.data else None
