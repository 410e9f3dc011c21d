"""In-process per-hostname request-frequency limiter.

Each gated request to a hostname reserves a window of
``interval_ms`` milliseconds during which further gated requests to the same
hostname are rejected.  Rejected requests are not queued; the caller gets
``False`` (and the fetcher raises
:class:`~snippet_scraper.core.exceptions.RequestFrequencyError`).

Expired entries are evicted lazily by the next :meth:`check_and_reserve`
call; there is no background sweeper.  Redirect hops are never gated, only
the first request of a fetch.

Typical usage::

    limiter = get_host_rate_limiter()
    if not limiter.check_and_reserve("example.com"):
        raise RequestFrequencyError(limiter.retry_after("example.com"))
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache

from snippet_scraper.config.settings import get_settings

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class HostRateLimiter:
    """Mapping of hostname to the earliest instant a new request may start.

    The check and the reservation happen under one lock, so concurrent
    fetches (threads or tasks) never both pass for the same window.

    Attributes:
        interval_ms: Length of the window reserved by each permitted request.
        clock: Returns the current time in milliseconds.  Monotonic by
            default; tests inject a fake.
    """

    interval_ms: float = 3000
    clock: Callable[[], float] = _monotonic_ms
    _next_allowed: dict[str, float] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def check_and_reserve(self, hostname: str) -> bool:
        """Return whether a request to ``hostname`` is permitted right now.

        When permitted, the hostname's next window is reserved as
        ``now + interval_ms``.  Entries whose instant has passed are evicted
        as a side effect.

        Args:
            hostname: Lower-cased host of the target URL.

        Returns:
            ``True`` if the request may proceed, ``False`` if it is too soon.
        """
        with self._lock:
            now = self.clock()
            allowed = self._next_allowed.get(hostname, now) <= now
            if allowed:
                self._next_allowed[hostname] = now + self.interval_ms

            expired = [host for host, instant in self._next_allowed.items() if instant < now]
            for host in expired:
                del self._next_allowed[host]
            if expired:
                logger.debug("scraper: evicted %d expired rate-limit entries", len(expired))
            return allowed

    def retry_after(self, hostname: str) -> float:
        """Return the seconds until ``hostname`` may be requested again."""
        with self._lock:
            instant = self._next_allowed.get(hostname)
            if instant is None:
                return 0.0
            return max(instant - self.clock(), 0.0) / 1000

    def clear(self) -> None:
        """Forget every reservation."""
        with self._lock:
            self._next_allowed.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._next_allowed)


@lru_cache
def get_host_rate_limiter() -> HostRateLimiter:
    """Return the process-wide limiter, configured from settings."""
    return HostRateLimiter(interval_ms=get_settings().rate_limit_interval_ms)
