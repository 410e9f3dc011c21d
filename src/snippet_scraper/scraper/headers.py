"""Helpers for custom request headers and URL classification."""

from __future__ import annotations

from snippet_scraper.core.exceptions import InvalidHeaderError
from snippet_scraper.scraper.config import HTTP_HEADER_LINE_REGEX, VIDEO_HOST_URL_REGEX


def parse_header_block(block: str | None) -> dict[str, str]:
    """Parse a wget-style block of ``Name: value`` lines.

    Header names other than ``Cookie``, ``Authorization`` and ``Accept`` must
    contain a hyphen.  Names keep the caller's spelling; names and values are
    trimmed.  Blank lines are skipped.

    Example::

        >>> parse_header_block("x-foo: 123\\nx-bar:abc")
        {'x-foo': '123', 'x-bar': 'abc'}

    Args:
        block: Newline-separated header lines, or ``None``.

    Returns:
        Mapping of header name to value (empty when ``block`` is empty).

    Raises:
        InvalidHeaderError: On the first line that does not match, naming it.
    """
    headers: dict[str, str] = {}
    if not block:
        return headers
    for raw_line in block.replace("\r", "").split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        match = HTTP_HEADER_LINE_REGEX.match(line)
        if match is None:
            raise InvalidHeaderError(line)
        headers[match.group(1)] = match.group(2)
    return headers


def is_video_host_url(url: str | None) -> bool:
    """Return ``True`` for YouTube watch/shorts pages and ``youtu.be`` links."""
    if not url:
        return False
    return VIDEO_HOST_URL_REGEX.match(url) is not None
