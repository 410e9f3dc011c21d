"""Fetch a bounded, token-delimited fragment of a remote HTML page.

Usage::

    from snippet_scraper import ScraperOptions, fetch_fragment, lookup_title

    opts = ScraperOptions("https://example.com/").with_start_token("<main", True)
    html = await fetch_fragment(opts)
    title = await lookup_title("https://example.com/")
"""

from __future__ import annotations

from snippet_scraper.core.exceptions import (
    ConfigurationError,
    FetchTimeoutError,
    InvalidHeaderError,
    InvalidUrlError,
    RedirectLimitError,
    RequestFrequencyError,
    SnippetScraperError,
    TransportError,
    UnsupportedContentTypeError,
)
from snippet_scraper.scraper.loader import fetch_fragment, fetch_fragment_as_document
from snippet_scraper.scraper.options import ScraperOptions, ScraperTimings, TimingPhase
from snippet_scraper.scraper.title import lookup_title

__all__ = [
    # operations
    "fetch_fragment",
    "fetch_fragment_as_document",
    "lookup_title",
    # configuration
    "ScraperOptions",
    "ScraperTimings",
    "TimingPhase",
    # exceptions
    "SnippetScraperError",
    "ConfigurationError",
    "InvalidUrlError",
    "InvalidHeaderError",
    "RequestFrequencyError",
    "RedirectLimitError",
    "UnsupportedContentTypeError",
    "TransportError",
    "FetchTimeoutError",
]
