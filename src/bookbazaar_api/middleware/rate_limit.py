"""Per-client rate limiting middleware."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from bookbazaar_shared.config import settings

from bookbazaar_api.middleware.auth import context_from_token
from bookbazaar_api.responses import error_response

PERIOD_SECONDS = 60
EXEMPT_PATHS = frozenset({"/health", "/ready"})


@dataclass
class RateBucket:
    count: int = 0
    period_start: float = 0.0
    burst_count: int = 0
    burst_second: float = 0.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed one-minute window per client plus a one-second burst window.

    Clients presenting a valid bearer token are keyed by their user id and
    get the authenticated limit; everyone else, including callers with an
    invalid token, is keyed by IP.
    """

    def __init__(self, app):
        super().__init__(app)
        self._buckets: dict[str, RateBucket] = {}
        self._lock = threading.Lock()

    def _get_key(self, request: Request) -> tuple[str, bool]:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            ctx = context_from_token(auth_header[7:])
            if ctx is not None:
                return f"user:{ctx.user_id}", True
        client = request.client
        ip = client.host if client else "unknown"
        return f"ip:{ip}", False

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        key, authenticated = self._get_key(request)
        max_requests = (
            settings.rate_limit_authenticated if authenticated else settings.rate_limit_anonymous
        )
        burst_limit = settings.rate_limit_burst

        now = time.monotonic()

        with self._lock:
            bucket = self._buckets.setdefault(key, RateBucket(period_start=now, burst_second=now))

            if now - bucket.period_start >= PERIOD_SECONDS:
                bucket.count = 0
                bucket.period_start = now

            if now - bucket.burst_second >= 1.0:
                bucket.burst_count = 0
                bucket.burst_second = now

            if bucket.count >= max_requests:
                retry_after = max(1, int(bucket.period_start + PERIOD_SECONDS - now))
                return JSONResponse(
                    status_code=429,
                    content=error_response(
                        "RATE_LIMIT_EXCEEDED",
                        f"Rate limit exceeded. Limit: {max_requests} per minute.",
                    ),
                    headers={
                        "Retry-After": str(retry_after),
                        "X-RateLimit-Limit": str(max_requests),
                        "X-RateLimit-Remaining": "0",
                    },
                )

            if bucket.burst_count >= burst_limit:
                return JSONResponse(
                    status_code=429,
                    content=error_response(
                        "BURST_LIMIT_EXCEEDED",
                        f"Burst limit exceeded. Max {burst_limit} requests/second.",
                    ),
                    headers={"Retry-After": "1"},
                )

            bucket.count += 1
            bucket.burst_count += 1
            remaining = max_requests - bucket.count

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
