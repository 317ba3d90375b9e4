"""
quoteflow.settings
==================

Configuration settings for the quoteflow service.

Plain module constants cover the local runtime (database file, API bind
address, log level).  Integration settings for the TMForum Quote API, the
notification service and the daily sweep live on a pydantic
:class:`Settings` model loaded from environment variables or a ``.env`` file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# Database settings
# ---------------------------------------------------------------------------
DB_FILE = os.environ.get("QUOTEFLOW_DB_FILE", BASE_DIR / "quoteflow.db")
DB_URL = f"sqlite:///{DB_FILE}"
DB_ECHO = os.environ.get("QUOTEFLOW_DB_ECHO", "False").lower() == "true"

# API settings
# ---------------------------------------------------------------------------
API_HOST = os.environ.get("QUOTEFLOW_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("QUOTEFLOW_API_PORT", "8000"))

# Runtime
# ---------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("QUOTEFLOW_LOG_LEVEL", "INFO").upper()
QUOTE_STORE_BACKEND = os.environ.get("QUOTEFLOW_STORE", "tmforum").lower()


# ---------------------------------------------------------------------------
# Pydantic settings model for external integrations
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings for the Quote Store, notifications and the sweep schedule."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # TMForum Quote Management API
    tmforum_base_url: HttpUrl = Field(
        default="http://localhost:8080/tmf-api",
        description="Base URL of the TMForum API gateway",
    )
    tmforum_quote_endpoint: str = Field("/quote/v4/quote", description="Quote resource path")
    tmforum_page_size: int = Field(100, ge=1, description="Page size when listing quotes")
    connect_timeout: float = Field(30.0, description="Connect timeout in seconds")
    read_timeout: float = Field(60.0, description="Read timeout in seconds")

    # Notification service (optional)
    notification_base_url: Optional[HttpUrl] = Field(None, description="Notification service base URL")
    notification_endpoint: str = Field("/charging/api/orderManagement/notify")

    # Sweep behaviour
    system_actor: str = Field("SYSTEM", description="Author id for automated mutations")
    sweep_hour: int = Field(0, ge=0, le=23)
    sweep_minute: int = Field(0, ge=0, le=59)
    sweep_timezone: str = Field("UTC")
    reconcile_missing_notes: bool = Field(
        False, description="Re-append the expiration note on cancelled quotes that lack it"
    )
    tender_sweep_enabled: bool = Field(True)

    @property
    def quote_url(self) -> str:
        return str(self.tmforum_base_url).rstrip("/") + self.tmforum_quote_endpoint

    @property
    def timeouts(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)


# Initialize settings
settings = Settings()
