"""FastAPI application factory."""

from __future__ import annotations

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from starlette.exceptions import HTTPException as StarletteHTTPException
from storage3.exceptions import StorageException
from supabase_auth.errors import AuthError

from bookbazaar_shared.config import settings
from bookbazaar_shared.errors import MarketplaceError

from bookbazaar_api import __version__
from bookbazaar_api.middleware.logging import LoggingMiddleware
from bookbazaar_api.middleware.rate_limit import RateLimitMiddleware
from bookbazaar_api.responses import error_response
from bookbazaar_api.routers.health import router as health_router
from bookbazaar_api.routers.v1 import v1_router
from bookbazaar_api.utils.logging import configure_logging

logger = structlog.get_logger()


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(MarketplaceError)
    async def marketplace_error(request: Request, exc: MarketplaceError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.code, exc.message, details=exc.details),
        )

    @app.exception_handler(APIError)
    async def postgrest_error(request: Request, exc: APIError) -> JSONResponse:
        logger.error("backend_error", path=request.url.path, code=exc.code, error=exc.message)
        return JSONResponse(
            status_code=502,
            content=error_response("BACKEND_ERROR", exc.message or "Database request failed"),
        )

    @app.exception_handler(StorageException)
    async def storage_error(request: Request, exc: StorageException) -> JSONResponse:
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=502,
            content=error_response("BACKEND_ERROR", str(exc) or "Storage request failed"),
        )

    @app.exception_handler(AuthError)
    async def auth_error(request: Request, exc: AuthError) -> JSONResponse:
        status = getattr(exc, "status", None) or 400
        return JSONResponse(
            status_code=status,
            content=error_response("BACKEND_ERROR", exc.message),
        )

    @app.exception_handler(httpx.HTTPError)
    async def transport_error(request: Request, exc: httpx.HTTPError) -> JSONResponse:
        logger.error("backend_unavailable", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=503,
            content=error_response("BACKEND_UNAVAILABLE", "Backend is unreachable. Please try again."),
        )


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="BookBazaar API",
        description="Peer-to-peer student textbook marketplace",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (order matters: last added = first executed)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(LoggingMiddleware)

    _register_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(v1_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()
