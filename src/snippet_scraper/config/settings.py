"""Process-wide settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
variable is prefixed with ``SNIPPET_SCRAPER_``, e.g.
``SNIPPET_SCRAPER_RATE_LIMIT_INTERVAL_MS=5000``.

Usage::

    from snippet_scraper.config.settings import get_settings

    settings = get_settings()
    interval = settings.rate_limit_interval_ms
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Scraper defaults and policy constants.

    Nothing here is required; every field has a working default.
    """

    model_config = SettingsConfigDict(
        env_prefix="SNIPPET_SCRAPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    # ------------------------------------------------------------------
    # Request defaults (applied to every new ScraperOptions)
    # ------------------------------------------------------------------

    default_user_agent: str = "snippet-scraper/1.0"
    """``User-Agent`` header sent unless the caller overrides it."""

    default_timeout_ms: int = Field(default=5000, ge=2)
    """Socket timeout in milliseconds."""

    default_chunk_buffer_size: int = Field(default=6000, ge=0)
    """Bytes to buffer before looking for start/stop tokens."""

    # ------------------------------------------------------------------
    # Policy constants
    # ------------------------------------------------------------------

    default_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    """Byte budget used when a request sets ``max_bytes`` to 0.  10 MiB pages
    should be more than enough."""

    rate_limit_interval_ms: int = Field(default=3000, ge=0)
    """Minimum delay between two rate-limited requests to the same hostname."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings singleton.

    In tests, call ``get_settings.cache_clear()`` after patching environment
    variables.
    """
    return Settings()
