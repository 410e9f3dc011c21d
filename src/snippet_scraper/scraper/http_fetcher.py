"""Async HTTP exchange driver for the stream scanner.

Uses ``httpx`` streaming responses so that the body is consumed chunk by
chunk and the connection is closed as soon as the
:class:`~snippet_scraper.scraper.stream_scanner.StreamScanner` has what it
needs.  Redirects are followed manually (never by httpx) so that every hop is
re-validated and counted against ``ScraperOptions.max_redirects``.
"""

from __future__ import annotations

import codecs
import logging

import httpx

from snippet_scraper.config.settings import get_settings
from snippet_scraper.core.exceptions import (
    FetchTimeoutError,
    InvalidUrlError,
    RequestFrequencyError,
    TransportError,
    UnsupportedContentTypeError,
)
from snippet_scraper.scraper.config import (
    CONTENT_TYPE_HTML_REGEX,
    DEFAULT_ENCODING,
    INVALID_LOCATION_MESSAGE,
)
from snippet_scraper.scraper.options import ScraperOptions
from snippet_scraper.scraper.rate_limiter import get_host_rate_limiter
from snippet_scraper.scraper.stream_scanner import ScanOutcome, StreamScanner

logger = logging.getLogger(__name__)

#: Byte order marks that pin a byte-order-dependent codec, longest first.
_BOM_CODECS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)
_UNMARKED_CODECS: dict[str, str] = {"utf-16": "utf-16-le", "utf-32": "utf-32-le"}
_BOM_PROBE_SIZE = 4


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_request_frequency(options: ScraperOptions) -> None:
    """Reserve a rate window for the target host or raise.

    Redirect hops and options with the restriction disabled are not gated.

    Raises:
        RequestFrequencyError: If the host's window has not opened yet.
    """
    if options.is_redirect() or not options.restrict_request_frequency:
        return
    limiter = get_host_rate_limiter()
    hostname = options.url.host
    if not limiter.check_and_reserve(hostname):
        # Never log the hostname here.
        logger.info("scraper: rejected request, too frequent")
        raise RequestFrequencyError(limiter.retry_after(hostname))


def _build_headers(options: ScraperOptions) -> dict[str, str]:
    headers: dict[str, str] = {}
    if options.user_agent:
        headers["User-Agent"] = options.user_agent
    headers.update(options.parsed_headers)
    return headers


def _pick_encoding(charset: str | None, tokens: list[str | None]) -> str:
    """Return the response charset if it is known and can encode the tokens."""
    if not charset:
        return DEFAULT_ENCODING
    try:
        codecs.lookup(charset)
        for token in tokens:
            if token:
                token.encode(charset)
    except (LookupError, UnicodeEncodeError):
        logger.debug("scraper: unusable charset '%s', falling back to %s", charset, DEFAULT_ENCODING)
        return DEFAULT_ENCODING
    return charset


def _resolve_byte_order(encoding: str, head: bytes) -> str:
    """Replace a byte-order-dependent codec with the fixed-endian one ``head`` uses.

    ``utf-16``/``utf-32`` without a byte order mark are read as little endian.
    """
    name = codecs.lookup(encoding).name
    if name not in _UNMARKED_CODECS:
        return encoding
    for bom, codec in _BOM_CODECS:
        if codec.startswith(name) and head.startswith(bom):
            return codec
    return _UNMARKED_CODECS[name]


def _encode_token(token: str | None, encoding: str) -> bytes | None:
    if not token:
        return None
    encoded = token.encode(encoding)
    # utf-8-sig prepends a BOM that never occurs mid-body.
    if encoded.startswith(codecs.BOM_UTF8):
        return encoded[len(codecs.BOM_UTF8) :]
    return encoded


def _new_scanner(options: ScraperOptions, encoding: str) -> StreamScanner:
    return StreamScanner(
        start_token=_encode_token(options.start_token, encoding),
        stop_token=_encode_token(options.stop_token, encoding),
        max_bytes=options.max_bytes or get_settings().default_max_bytes,
        chunk_buffer_size=options.chunk_buffer_size,
        start_included=options.start_token_included,
        stop_included=options.stop_token_included,
    )


# ---------------------------------------------------------------------------
# Exchange
# ---------------------------------------------------------------------------


async def _scan_body(response: httpx.Response, options: ScraperOptions) -> str:
    """Feed the response body to a fresh scanner and return the decoded result.

    The first bytes are held back until the byte order mark (if any) can be
    seen.  The response is closed as soon as the scan turns terminal.
    """
    charset = _pick_encoding(response.charset_encoding, [options.start_token, options.stop_token])
    head = b""
    encoding = charset
    scanner: StreamScanner | None = None

    async for chunk in response.aiter_bytes():
        if scanner is None:
            head += chunk
            if len(head) < _BOM_PROBE_SIZE:
                continue
            encoding = _resolve_byte_order(charset, head)
            scanner = _new_scanner(options, encoding)
            chunk = head
        if scanner.feed(chunk) is ScanOutcome.TERMINAL:
            await response.aclose()
            break

    if scanner is None:
        encoding = _resolve_byte_order(charset, head)
        scanner = _new_scanner(options, encoding)
        scanner.feed(head)

    return scanner.finish().decode(encoding, errors="ignore").removeprefix("\ufeff")


async def _run_exchange(
    options: ScraperOptions,
    client: httpx.AsyncClient,
) -> tuple[str | None, str]:
    """Issue one GET for the current ``options.url``.

    Returns:
        ``(location, "")`` for a redirect response, otherwise
        ``(None, html)`` with the scanned fragment.

    Raises:
        UnsupportedContentTypeError: If the response is not HTML.
        InvalidUrlError: If a redirect `Location` header cannot be parsed.
        RedirectLimitError: If such a redirect arrives with no hop left.
        FetchTimeoutError: If the request times out.
        TransportError: On any other transport-level failure.
    """
    url = str(options.url)
    logger.debug("scraper: GET %s", url)
    try:
        async with client.stream(
            "GET",
            options.url,
            headers=_build_headers(options),
            timeout=httpx.Timeout(options.timeout_ms / 1000),
            follow_redirects=False,
        ) as response:
            if response.has_redirect_location:
                return response.headers["location"], ""

            content_type = response.headers.get("content-type", "")
            if not CONTENT_TYPE_HTML_REGEX.search(content_type):
                logger.info("scraper: unsupported content-type '%s' for %s", content_type, url)
                raise UnsupportedContentTypeError(content_type, url)

            return None, await _scan_body(response, options)
    except httpx.TimeoutException as exc:
        logger.warning("scraper: timeout fetching %s", url)
        raise FetchTimeoutError(f"scraper request timed out: {exc}", url) from exc
    except httpx.RemoteProtocolError as exc:
        # httpx parses the Location header itself, even without following it.
        if str(exc).startswith(INVALID_LOCATION_MESSAGE):
            logger.info("scraper: unparseable redirect location from %s", url)
            options.ensure_redirect_allowed()
            raise InvalidUrlError() from exc
        logger.warning("scraper: protocol error for %s: %s", url, exc)
        raise TransportError(f"scraper request failed, reason: {exc}", url) from exc
    except httpx.HTTPError as exc:
        logger.warning("scraper: request error for %s: %s", url, exc)
        raise TransportError(f"scraper request failed, reason: {exc}", url) from exc


# ---------------------------------------------------------------------------
# Public fetch function
# ---------------------------------------------------------------------------


async def request_html(
    options: ScraperOptions,
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Fetch ``options.url`` and return the scanned fragment.

    Performs the following steps:

    1. **Rate limit** - unless disabled, reserves the host's rate window
       (redirect hops are never gated).
    2. **GET** - streams the response with the configured timeout, user
       agent and custom headers.
    3. **Redirects** - a redirect response is closed, ``options`` is pointed
       at the new location (counting the hop) and the next exchange starts.
    4. **Scan** - an HTML body is fed to a fresh scanner until it is
       terminal or the stream ends.

    Args:
        options: Request configuration; mutated in place on redirects.
        client: Shared :class:`httpx.AsyncClient`.  A private client is
            created and closed when omitted.

    Returns:
        The decoded fragment (not yet compacted or transformed).

    Raises:
        RequestFrequencyError: If the host was requested too recently.
        RedirectLimitError: If the hop budget is exhausted.
        InvalidUrlError: If a redirect target is not acceptable.
        UnsupportedContentTypeError: If the final response is not HTML.
        TransportError: On connection failure or timeout.
    """
    if client is None:
        async with httpx.AsyncClient() as own_client:
            return await request_html(options, client=own_client)

    _check_request_frequency(options)

    while True:
        location, html = await _run_exchange(options, client)
        if location is None:
            logger.debug("scraper: scanned %d characters from %s", len(html), options.url)
            return html
        options.update_for_redirect(location)
