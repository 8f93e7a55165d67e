"""
API settings.

All values can be overridden via environment variables prefixed with
``GUIDE_`` (for example ``GUIDE_DATABASE_URL``) or a ``.env`` file.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings


class GuideAPISettings(BaseSettings):
    """Settings for the Rookie Guide REST API.

    Order of precedence (highest → lowest):
        1. Environment variables (``GUIDE_API_PREFIX``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api", description="URL prefix for resource endpoints")
    api_title: str = Field(default="Rookie Guide API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///rookie_guide.db",
        description="SQLite file path or sqlite:/// URL",
    )
    data_dir: str = Field(
        default="~/.rookie-guide",
        description="Directory that relative database paths resolve against",
    )

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # ── Auth ─────────────────────────────────────────────────────────────
    api_key: str | None = Field(default=None, description="Optional API key for gating access")

    # ── Checklists ───────────────────────────────────────────────────────
    update_retry_attempts: int = Field(
        default=3,
        ge=0,
        description="Retries for a step update that hits a write conflict",
    )

    model_config: dict[str, Any] = {
        "env_prefix": "GUIDE_",
        "env_file": ".env",
        "extra": "ignore",
    }
