"""
config.py — pydantic-settings Settings class.

All environment variables for the staffing directory are declared here.
Both the API and the scheduled jobs import `settings` from this module.

Usage:
    from staffdir_shared.config import settings
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

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    compliance_bucket: str = Field(default="compliance-documents")
    signed_url_ttl_seconds: int = Field(default=3600)
    max_document_bytes: int = Field(default=10 * 1024 * 1024)

    # -------------------------------------------------------------------------
    # API server
    # -------------------------------------------------------------------------
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: str = Field(default="http://localhost:3000")
    jwt_secret: str = Field(default="change-me-in-production")
    site_url: str = Field(default="http://localhost:3000")

    # Rate limits (requests per minute per role)
    rate_limit_anonymous: int = Field(default=60)
    rate_limit_user: int = Field(default=120)
    rate_limit_agency_owner: int = Field(default=300)
    rate_limit_admin: int = Field(default=1000)

    # -------------------------------------------------------------------------
    # Agencies
    # -------------------------------------------------------------------------
    max_slug_attempts: int = Field(default=5, ge=1)

    # -------------------------------------------------------------------------
    # Email (Resend)
    # -------------------------------------------------------------------------
    resend_api_key: str = Field(default="")
    resend_api_url: str = Field(default="https://api.resend.com")
    email_sender: str = Field(default="Staffing Directory <notifications@localhost>")

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

    @field_validator("supabase_url", "resend_api_url", "site_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton: import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
