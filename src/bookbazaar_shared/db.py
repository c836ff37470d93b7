"""
db.py — Supabase client factories.

Usage:
    from bookbazaar_shared.db import get_supabase_client, get_user_client

    supabase = get_supabase_client()                    # anon key (public reads)
    supabase = get_supabase_client(service_role=True)   # service key (outbox flush)
    supabase = get_user_client(ctx.access_token)        # caller's JWT (RLS applies)
    supabase = await get_async_supabase_client(token)   # realtime feed
"""

from __future__ import annotations

import threading
from typing import Optional

import structlog
from supabase import AsyncClient, Client, acreate_client, create_client

from bookbazaar_shared.config import settings

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Supabase — one shared client per role per process (thread-safe via lock)
# ---------------------------------------------------------------------------
_supabase_lock = threading.Lock()
_supabase_anon: Optional[Client] = None
_supabase_service: Optional[Client] = None


def get_supabase_client(*, service_role: bool = False) -> Client:
    """
    Return a singleton Supabase client.

    Args:
        service_role: If True, uses the service role key (full DB access).
                      If False (default), uses the anon key (RLS applies).

    Returns:
        supabase.Client instance.
    """
    global _supabase_anon, _supabase_service

    with _supabase_lock:
        if service_role:
            if _supabase_service is None:
                if not settings.supabase_service_key:
                    raise RuntimeError(
                        "SUPABASE_SERVICE_KEY is not set. "
                        "Set it in .env before using service_role=True."
                    )
                _supabase_service = create_client(
                    settings.supabase_url,
                    settings.supabase_service_key,
                )
                logger.info("supabase_client_created", role="service_role")
            return _supabase_service
        else:
            if _supabase_anon is None:
                if not settings.supabase_anon_key:
                    raise RuntimeError(
                        "SUPABASE_ANON_KEY is not set. Set it in .env."
                    )
                _supabase_anon = create_client(
                    settings.supabase_url,
                    settings.supabase_anon_key,
                )
                logger.info("supabase_client_created", role="anon")
            return _supabase_anon


def new_anon_client() -> Client:
    """
    Return a fresh, unshared anon client.

    Auth calls (sign-in, sign-up, sign-out) store session state on the
    client, so they never use the shared singleton.
    """
    if not settings.supabase_anon_key:
        raise RuntimeError("SUPABASE_ANON_KEY is not set. Set it in .env.")
    return create_client(settings.supabase_url, settings.supabase_anon_key)


def get_user_client(access_token: str) -> Client:
    """
    Return a client that acts as the user owning ``access_token``.

    The PostgREST and Storage sub-clients are built lazily from
    ``options.headers``, so the bearer must be set before either is touched.
    """
    client = new_anon_client()
    client.options.headers["Authorization"] = f"Bearer {access_token}"
    return client


async def get_async_supabase_client(access_token: str | None = None) -> AsyncClient:
    """Create an async client for realtime subscriptions."""
    if not settings.supabase_anon_key:
        raise RuntimeError("SUPABASE_ANON_KEY is not set. Set it in .env.")
    client = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
    if access_token:
        await client.realtime.set_auth(access_token)
    return client


def reset_supabase_clients() -> None:
    """Reset singleton clients (useful in tests)."""
    global _supabase_anon, _supabase_service
    with _supabase_lock:
        _supabase_anon = None
        _supabase_service = None
