"""Public fetch pipeline: fetch, scan, compact, transform, and parse.

``fetch_fragment`` returns the post-processed text.
``fetch_fragment_as_document`` additionally parses it with BeautifulSoup so
that callers can query it with CSS selectors::

    opts = ScraperOptions(url).with_start_token("</head>").with_compact(True)
    soup = await fetch_fragment_as_document(opts)
    with opts.measure(TimingPhase.SCRAPE):
        items = [li.get_text(strip=True) for li in soup.select("li")]
"""

from __future__ import annotations

import logging

import httpx
from bs4 import BeautifulSoup

from snippet_scraper.core.exceptions import ConfigurationError
from snippet_scraper.scraper.config import COMPACT_REGEX
from snippet_scraper.scraper.http_fetcher import request_html
from snippet_scraper.scraper.options import ScraperOptions, TimingPhase

logger = logging.getLogger(__name__)

#: Parser handed to BeautifulSoup.  The stdlib parser keeps fragments as
#: written instead of inventing ``<html>``/``<head>`` wrappers.
DOCUMENT_PARSER: str = "html.parser"


def post_process(html: str, options: ScraperOptions) -> str:
    """Apply compaction and then the caller's transform to ``html``.

    Compaction removes newlines and whitespace runs of two or more
    characters outright; it does not collapse them to a single space.
    """
    if options.compact:
        html = COMPACT_REGEX.sub("", html)
    if options.transform is not None:
        html = options.transform(html)
    return html


def _require_options(options: object) -> None:
    if not isinstance(options, ScraperOptions):
        raise ConfigurationError("Invalid ScraperOptions")


async def fetch_fragment(
    options: ScraperOptions,
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Fetch, scan and post-process the page described by ``options``.

    Measures the ``load`` and ``transform`` phases on ``options``.

    Args:
        options: Request configuration for this fetch.
        client: Optional shared :class:`httpx.AsyncClient`.

    Returns:
        The scanned fragment after compaction and transform.

    Raises:
        ConfigurationError: If ``options`` is not a :class:`ScraperOptions`.
        SnippetScraperError: Any fetch failure, see
            :func:`~snippet_scraper.scraper.http_fetcher.request_html`.
    """
    _require_options(options)

    with options.measure(TimingPhase.LOAD):
        html = await request_html(options, client=client)

    with options.measure(TimingPhase.TRANSFORM):
        return post_process(html, options)


async def fetch_fragment_as_document(
    options: ScraperOptions,
    *,
    client: httpx.AsyncClient | None = None,
) -> BeautifulSoup:
    """Fetch the fragment and parse it into a queryable document.

    Fragments without a ``<body`` marker are wrapped in ``<body>`` so that
    the tree always has a body root.  Measures the ``to_dom`` phase.
    """
    html = await fetch_fragment(options, client=client)
    with options.measure(TimingPhase.TO_DOM):
        markup = html if "<body" in html else "<body>" + html
        return BeautifulSoup(markup, DOCUMENT_PARSER)
