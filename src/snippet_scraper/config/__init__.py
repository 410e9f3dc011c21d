"""Configuration package for the snippet scraper."""

from __future__ import annotations

from snippet_scraper.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
