"""Constants and tuning parameters for the snippet scraper.

Values that operators may want to change per deployment (user agent,
timeouts, byte cap, rate interval) live in
:class:`snippet_scraper.config.settings.Settings`; the values here are
fixed policy.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Option bounds
# ---------------------------------------------------------------------------

#: Upper bound accepted by ``ScraperOptions.with_max_bytes``.
MAX_BYTES_LIMIT: int = 10_000_000

#: Inclusive bounds accepted by ``ScraperOptions.with_max_redirects``.
MIN_REDIRECTS: int = 1
MAX_REDIRECTS: int = 4

#: Smallest accepted timeout (milliseconds).
MIN_TIMEOUT_MS: int = 2

# ---------------------------------------------------------------------------
# URL acceptance
# ---------------------------------------------------------------------------

#: Only absolute http(s) URLs are fetched.
HTTP_OR_HTTPS_URL_REGEX: re.Pattern[str] = re.compile(r"^https?://", re.IGNORECASE)

#: URL paths ending in one of these extensions point at binary media
#: (images, video, audio, archives) and are rejected without a request.
UNSUPPORTED_FILENAME_REGEX: re.Pattern[str] = re.compile(
    r"\.("
    r"jpe?g|png|gif.?|bmp|ico|tiff?|webp|avif|heic"
    r"|mp.|m4[av]|avi|mov|mkv|web.|flv|wmv|ogg|ogv|wav|flac|aac"
    r"|zip|gz|tgz|bz2|xz|7z|rar|tar"
    r")$",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: Content types the scanner accepts.
CONTENT_TYPE_HTML_REGEX: re.Pattern[str] = re.compile(r"text/x?html", re.IGNORECASE)

#: Start of the message httpx raises when a redirect `Location` cannot be parsed.
INVALID_LOCATION_MESSAGE: str = "Invalid URL in location header"

#: Encoding used when the response declares no (or an unknown) charset.
DEFAULT_ENCODING: str = "utf-8"

#: Header names accepted in a raw header block.  Anything else must contain a
#: hyphen (``X-Foo``, ``Accept-Language``, ...).
HTTP_HEADER_LINE_REGEX: re.Pattern[str] = re.compile(
    r"^\s*(Cookie|Authorization|Accept|[a-z0-9]+?-[a-z0-9-]+?)\s*:\s*([^\"]+?)\s*$",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Title lookup
# ---------------------------------------------------------------------------

#: Video-hosting pages bury ``<title>`` behind large inline scripts.
VIDEO_HOST_URL_REGEX: re.Pattern[str] = re.compile(
    r"^https?://(?:youtu\.be/|(www\.)?youtube\.com/(watch|shorts))",
    re.IGNORECASE,
)

TITLE_START_TOKEN: str = "<title"
TITLE_STOP_TOKEN: str = "</title>"
TITLE_MAX_BYTES: int = 25_000
TITLE_MAX_BYTES_VIDEO_HOST: int = 600_000
TITLE_MAX_REDIRECTS: int = 3
TITLE_TIMEOUT_MS: int = 4000

#: Extracts the text following the opening ``<title ...>`` tag.
TITLE_CONTENT_REGEX: re.Pattern[str] = re.compile(
    r"^<title[^>]*?>([^<]*)", re.IGNORECASE | re.MULTILINE
)

# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

#: Newlines and runs of two or more whitespace characters are removed
#: entirely (not collapsed to a single space) when compaction is on.
COMPACT_REGEX: re.Pattern[str] = re.compile(r"\n|\r|\s{2,}")
