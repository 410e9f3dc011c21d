"""Per-fetch request configuration for the snippet scraper.

A :class:`ScraperOptions` instance is built by the caller with chained
``with_*`` setters, each validated eagerly, and then handed to
:func:`snippet_scraper.scraper.loader.fetch_fragment`.  One instance belongs
to exactly one logical fetch: redirects rewrite its URL and hop counter in
place, so it must not be shared between concurrent fetches.

Typical usage::

    opts = (
        ScraperOptions("https://example.com/forum/thread/1")
        .with_start_token('<div id="page-body"', included=True)
        .with_stop_token('<div class="action-bar">')
        .with_max_redirects(2)
        .with_compact(True)
    )
    html = await fetch_fragment(opts)
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from urllib.parse import urljoin

import httpx

from snippet_scraper.config.settings import get_settings
from snippet_scraper.core.exceptions import (
    ConfigurationError,
    InvalidUrlError,
    RedirectLimitError,
)
from snippet_scraper.scraper.config import (
    MAX_BYTES_LIMIT,
    MAX_REDIRECTS,
    MIN_REDIRECTS,
    MIN_TIMEOUT_MS,
)
from snippet_scraper.scraper.headers import parse_header_block
from snippet_scraper.scraper.url_validation import validate_url

logger = logging.getLogger(__name__)

TransformFn = Callable[[str], str]


# ---------------------------------------------------------------------------
# Timings
# ---------------------------------------------------------------------------


class TimingPhase(str, enum.Enum):
    """Measurable phases of a scrape."""

    LOAD = "load"
    TRANSFORM = "transform"
    TO_DOM = "to_dom"
    SCRAPE = "scrape"


@dataclass(frozen=True)
class ScraperTimings:
    """Read-only snapshot of the measured phase durations.

    Attributes:
        load: Milliseconds spent fetching and scanning the response.
        transform: Milliseconds spent compacting and transforming the result.
        to_dom: Milliseconds spent building the document tree.
        scrape: Milliseconds the caller spent querying the tree.
    """

    load: float = 0.0
    transform: float = 0.0
    to_dom: float = 0.0
    scrape: float = 0.0


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_whole_number(value: object) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return _is_number(value)


# ---------------------------------------------------------------------------
# ScraperOptions
# ---------------------------------------------------------------------------


class ScraperOptions:
    """Request configuration for one fetch, including its redirect chain.

    Args:
        url: Absolute http(s) URL to fetch.

    Raises:
        InvalidUrlError: If ``url`` is not acceptable.
    """

    def __init__(self, url: str) -> None:
        settings = get_settings()

        self.url: httpx.URL = validate_url(url)
        self.start_token: str | None = None
        self.start_token_included: bool = True
        self.stop_token: str | None = None
        self.stop_token_included: bool = False
        self.max_bytes: int = 0
        self.chunk_buffer_size: int = settings.default_chunk_buffer_size
        self.timeout_ms: float = settings.default_timeout_ms
        self.max_redirects: int = 0
        self.user_agent: str | None = settings.default_user_agent
        self.headers: str | None = None
        self.parsed_headers: dict[str, str] = {}
        self.restrict_request_frequency: bool = True
        self.compact: bool = False
        self.transform: TransformFn | None = None

        self._redirects_so_far = 0
        self._durations: dict[TimingPhase, float] = {phase: 0.0 for phase in TimingPhase}
        self._started: dict[TimingPhase, float] = {}

    def __repr__(self) -> str:
        return (
            f"ScraperOptions(url={str(self.url)!r}, start_token={self.start_token!r}, "
            f"stop_token={self.stop_token!r}, max_bytes={self.max_bytes}, "
            f"redirects={self._redirects_so_far}/{self.max_redirects})"
        )

    # ------------------------------------------------------------------
    # Builder setters
    # ------------------------------------------------------------------

    def with_start_token(self, token: str | None, included: bool = False) -> ScraperOptions:
        """Start the result at ``token``; ``None`` or ``""`` clears it.

        Args:
            token: Literal marker to search for.
            included: Keep the token itself at the start of the result.
        """
        self.start_token = token or None
        self.start_token_included = bool(included)
        return self

    def with_stop_token(self, token: str | None, included: bool = False) -> ScraperOptions:
        """End the result at ``token``; ``None`` or ``""`` clears it.

        Args:
            token: Literal marker to search for after the start token.
            included: Keep the token itself at the end of the result.
        """
        self.stop_token = token or None
        self.stop_token_included = bool(included)
        return self

    def with_max_bytes(self, max_bytes: int) -> ScraperOptions:
        """Cap the result size; ``0`` means the configured default cap."""
        if not _is_whole_number(max_bytes) or not 0 <= max_bytes <= MAX_BYTES_LIMIT:
            raise ConfigurationError(f"Illegal value for max bytes: {max_bytes}")
        self.max_bytes = int(max_bytes)
        return self

    def with_chunk_buffer_size(self, size: int) -> ScraperOptions:
        """Set how many bytes to buffer before searching for tokens.

        The effective buffer is never smaller than the longest token.
        """
        if not _is_whole_number(size) or size < 0:
            raise ConfigurationError(f"Invalid chunk buffer size: {size}")
        self.chunk_buffer_size = int(size)
        return self

    def with_timeout_ms(self, timeout_ms: float) -> ScraperOptions:
        if not _is_number(timeout_ms) or timeout_ms != timeout_ms or timeout_ms < MIN_TIMEOUT_MS:
            raise ConfigurationError(f"Invalid timeout value: {timeout_ms}")
        self.timeout_ms = timeout_ms
        return self

    def with_max_redirects(self, max_redirects: int) -> ScraperOptions:
        if (
            not isinstance(max_redirects, int)
            or isinstance(max_redirects, bool)
            or not MIN_REDIRECTS <= max_redirects <= MAX_REDIRECTS
        ):
            raise ConfigurationError(f"Illegal value for max redirects: {max_redirects}")
        self.max_redirects = max_redirects
        return self

    def with_user_agent(self, user_agent: str | None) -> ScraperOptions:
        """Set the ``User-Agent`` header; a falsy value sends none."""
        if user_agent and not isinstance(user_agent, str):
            raise ConfigurationError("Invalid user agent")
        self.user_agent = user_agent or None
        return self

    def with_headers(self, headers: str | None) -> ScraperOptions:
        """Attach a raw ``Name: value`` header block.

        Raises:
            InvalidHeaderError: If any line is malformed.
        """
        if headers is not None and not isinstance(headers, str):
            raise ConfigurationError("Invalid headers")
        self.parsed_headers = parse_header_block(headers)
        self.headers = headers or None
        return self

    def with_request_frequency_restriction(self, restrict: bool) -> ScraperOptions:
        """Toggle the per-host rate limiter for this fetch."""
        self.restrict_request_frequency = bool(restrict)
        return self

    def with_compact(self, compact: bool) -> ScraperOptions:
        """Strip newlines and whitespace runs from the result."""
        self.compact = bool(compact)
        return self

    def with_transform(self, transform: TransformFn) -> ScraperOptions:
        """Apply ``transform`` to the (compacted) result."""
        if not callable(transform):
            raise ConfigurationError("Invalid transform function")
        self.transform = transform
        return self

    # ------------------------------------------------------------------
    # Redirects
    # ------------------------------------------------------------------

    @property
    def redirects_so_far(self) -> int:
        return self._redirects_so_far

    def is_redirect(self) -> bool:
        """Return ``True`` once the options have followed at least one redirect."""
        return self._redirects_so_far > 0

    def ensure_redirect_allowed(self) -> None:
        """Raise :class:`RedirectLimitError` if no redirect hop is left."""
        if self._redirects_so_far >= self.max_redirects:
            raise RedirectLimitError(self.max_redirects)

    def update_for_redirect(self, location: str) -> None:
        """Point the options at a redirect target and count the hop.

        Relative locations are resolved against the current URL.

        Raises:
            RedirectLimitError: If the hop budget is already spent.
            InvalidUrlError: If the resolved target is not acceptable.
        """
        self.ensure_redirect_allowed()
        try:
            target = urljoin(str(self.url), location)
        except ValueError:
            raise InvalidUrlError() from None
        self.url = validate_url(target)
        self._redirects_so_far += 1
        logger.debug(
            "scraper: following redirect %d/%d to %s",
            self._redirects_so_far,
            self.max_redirects,
            self.url,
        )

    # ------------------------------------------------------------------
    # Timings
    # ------------------------------------------------------------------

    def start_measure(self, phase: TimingPhase) -> ScraperOptions:
        self._started[phase] = time.perf_counter()
        return self

    def stop_measure(self, phase: TimingPhase) -> ScraperOptions:
        """Record the elapsed time since :meth:`start_measure` for ``phase``.

        Stopping a phase that was never started records ``0``.
        """
        started = self._started.pop(phase, None)
        elapsed = (time.perf_counter() - started) * 1000 if started is not None else 0.0
        self._durations[phase] = max(elapsed, 0.0)
        return self

    @contextmanager
    def measure(self, phase: TimingPhase) -> Iterator[None]:
        """Measure the enclosed block as ``phase``, even if it raises."""
        self.start_measure(phase)
        try:
            yield
        finally:
            self.stop_measure(phase)

    def get_timings(self) -> ScraperTimings:
        """Return a snapshot of the durations measured so far."""
        return ScraperTimings(
            load=self._durations[TimingPhase.LOAD],
            transform=self._durations[TimingPhase.TRANSFORM],
            to_dom=self._durations[TimingPhase.TO_DOM],
            scrape=self._durations[TimingPhase.SCRAPE],
        )
