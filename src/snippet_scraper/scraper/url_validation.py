"""Acceptance checks for the URLs the scraper is allowed to fetch.

A URL is accepted only when it is an absolute ``http://`` or ``https://``
address that parses cleanly, does not point at binary media, and whose
hostname survives strict IDNA processing.  The last check rejects
internationalized hostnames built from confusable characters that normalize
into a *different* host (e.g. ``U+2100 ACCOUNT OF`` turning into ``a/c``);
see https://hackerone.com/reports/678487.

The same check runs on the original URL and again on every redirect target.
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import httpx
import idna

from snippet_scraper.core.exceptions import InvalidUrlError
from snippet_scraper.scraper.config import (
    HTTP_OR_HTTPS_URL_REGEX,
    UNSUPPORTED_FILENAME_REGEX,
)

logger = logging.getLogger(__name__)


def _is_safe_hostname(hostname: str) -> bool:
    """Return ``True`` if ``hostname`` cannot spoof a different host.

    Plain ASCII hostnames are taken as-is.  Anything else has to pass UTS #46
    mapping with STD3 rules and IDNA 2008 label validation.
    """
    if hostname.isascii():
        return True
    try:
        idna.encode(hostname, uts46=True, std3_rules=True)
    except (idna.IDNAError, UnicodeError):
        return False
    return True


def validate_url(url: object) -> httpx.URL:
    """Validate ``url`` and return it as an :class:`httpx.URL`.

    Args:
        url: Candidate URL.  Anything other than a ``str`` is rejected.

    Returns:
        The parsed URL.

    Raises:
        InvalidUrlError: If the URL is unparseable, not http(s), points at a
            binary media file, or encodes a spoofing hostname.
    """
    if not isinstance(url, str) or not HTTP_OR_HTTPS_URL_REGEX.match(url):
        raise InvalidUrlError()

    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        raise InvalidUrlError() from None
    if not hostname or not _is_safe_hostname(hostname):
        logger.debug("scraper: rejected url with unsafe hostname")
        raise InvalidUrlError()

    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, ValueError):
        raise InvalidUrlError() from None

    if not parsed.host or UNSUPPORTED_FILENAME_REGEX.search(parsed.path):
        raise InvalidUrlError()
    return parsed
