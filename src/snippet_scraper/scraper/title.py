"""Page title lookup built on top of :func:`fetch_fragment`."""

from __future__ import annotations

import html as html_module
import logging

import httpx

from snippet_scraper.scraper.config import (
    TITLE_CONTENT_REGEX,
    TITLE_MAX_BYTES,
    TITLE_MAX_BYTES_VIDEO_HOST,
    TITLE_MAX_REDIRECTS,
    TITLE_START_TOKEN,
    TITLE_STOP_TOKEN,
    TITLE_TIMEOUT_MS,
)
from snippet_scraper.scraper.headers import is_video_host_url
from snippet_scraper.scraper.loader import fetch_fragment
from snippet_scraper.scraper.options import ScraperOptions

logger = logging.getLogger(__name__)


def extract_title_content(html: str) -> str:
    """Return the stripped text after the opening ``<title>`` tag, or ``""``."""
    match = TITLE_CONTENT_REGEX.search(html)
    return match.group(1).strip() if match else ""


def build_title_options(url: str, skip_rate_limit: bool = False) -> ScraperOptions:
    """Return the options used by :func:`lookup_title` for ``url``.

    Raises:
        InvalidUrlError: If ``url`` is not acceptable.
    """
    max_bytes = TITLE_MAX_BYTES_VIDEO_HOST if is_video_host_url(url) else TITLE_MAX_BYTES
    return (
        ScraperOptions(url)
        .with_start_token(TITLE_START_TOKEN, included=True)
        .with_stop_token(TITLE_STOP_TOKEN, included=False)
        .with_compact(True)
        .with_max_redirects(TITLE_MAX_REDIRECTS)
        .with_timeout_ms(TITLE_TIMEOUT_MS)
        .with_max_bytes(max_bytes)
        .with_transform(extract_title_content)
        .with_request_frequency_restriction(not skip_rate_limit)
    )


async def lookup_title(
    url: str,
    skip_rate_limit: bool = False,
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Determine the title of the page at ``url``.

    Args:
        url: Page to look up.
        skip_rate_limit: Bypass the per-host request-frequency restriction.
        client: Optional shared :class:`httpx.AsyncClient`.

    Returns:
        The entity-decoded, stripped title; ``""`` if the page has none.

    Raises:
        SnippetScraperError: On invalid input or any fetch failure.
    """
    options = build_title_options(url, skip_rate_limit)
    title = html_module.unescape(await fetch_fragment(options, client=client) or "").strip()
    logger.debug("scraper: title lookup for %s took %s", options.url, options.get_timings())
    return title
