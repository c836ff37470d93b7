"""
config.py — pydantic-settings Settings class.

All environment variables for the bookbazaar service are declared here.
Both the API and the CLI import `settings` from this module.

Usage:
    from bookbazaar_shared.config import settings
    print(settings.supabase_url)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase
    # -------------------------------------------------------------------------
    supabase_url: str = Field(default="http://localhost:54321")
    supabase_anon_key: str = Field(default="")
    supabase_service_key: str = Field(default="")
    jwt_secret: str = Field(default="change-me-in-production")

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    listing_images_bucket: str = Field(default="book-images")
    max_image_bytes: int = Field(default=5 * 1024 * 1024)

    # -------------------------------------------------------------------------
    # Marketplace
    # -------------------------------------------------------------------------
    currency_symbol: str = Field(default="₹")
    notification_retry_attempts: int = Field(default=3, ge=1)
    notification_retry_base_delay: float = Field(default=0.5, ge=0)

    # -------------------------------------------------------------------------
    # API server
    # -------------------------------------------------------------------------
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: str = Field(default="http://localhost:5173,http://localhost:3000")

    # Rate limits (requests per minute, burst per second)
    rate_limit_anonymous: int = Field(default=120)
    rate_limit_authenticated: int = Field(default=600)
    rate_limit_burst: int = Field(default=20)

    # -------------------------------------------------------------------------
    # CLI
    # -------------------------------------------------------------------------
    session_file: str = Field(default="~/.bookbazaar/session.json")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def session_path(self) -> Path:
        return Path(self.session_file).expanduser()

    @field_validator("supabase_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton — import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
