"""Incremental start/stop-token scanner over a chunked response body.

:class:`StreamScanner` consumes a response body as an arbitrary sequence of
byte chunks and keeps only what belongs to the result:

1. Chunks are buffered until at least ``effective_buffer_size`` bytes are
   pending, so the token search runs over reasonably large windows.
2. Until the start token is found, everything except the last
   ``len(start_token) - 1`` bytes is discarded (a token may straddle the
   next chunk boundary).
3. Once started, pending bytes move into the output, and the output is
   searched for the stop token from ``stop_search_floor`` onwards.  The
   floor only moves forward: the region below it was already scanned or
   holds the included start token.
4. A stop-token match or reaching the byte budget makes the scan *terminal*:
   the caller should stop reading and close the connection.

Without any token the scanner is a plain byte counter that truncates the
final chunk exactly at the budget.

The scanner does no I/O and can be driven by synthetic chunk sequences::

    scanner = StreamScanner(start_token=b"<title", stop_token=b"</title>",
                            max_bytes=25000, start_included=True)
    for chunk in chunks:
        if scanner.feed(chunk) is ScanOutcome.TERMINAL:
            break
    html = scanner.finish()
"""

from __future__ import annotations

import enum
import logging

logger = logging.getLogger(__name__)


class ScanOutcome(str, enum.Enum):
    """Result of feeding one chunk to a :class:`StreamScanner`."""

    CONTINUE = "continue"
    TERMINAL = "terminal"


class StreamScanner:
    """Stateful token scanner for one HTTP exchange.

    Args:
        start_token: Marker where the result begins, or ``None`` to start at
            the first byte.
        stop_token: Marker where the result ends, or ``None`` to read until
            the budget or the end of the stream.
        max_bytes: Hard upper bound on the result length (must be positive).
        chunk_buffer_size: Minimum number of pending bytes before searching.
        start_included: Keep the start token in the result.
        stop_included: Keep the stop token in the result.
    """

    def __init__(
        self,
        *,
        start_token: bytes | None,
        stop_token: bytes | None,
        max_bytes: int,
        chunk_buffer_size: int = 0,
        start_included: bool = True,
        stop_included: bool = False,
    ) -> None:
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        self.start_token = start_token or b""
        self.stop_token = stop_token or b""
        self.max_bytes = max_bytes
        self.start_included = start_included
        self.stop_included = stop_included
        self.effective_buffer_size = max(
            chunk_buffer_size, len(self.start_token), len(self.stop_token)
        )

        # An excluded stop token starting just below the budget cuts the
        # result shorter than the budget, so keep reading until it could
        # have fully arrived.
        self._stop_slack = (
            len(self.stop_token) - 1 if self.stop_token and not stop_included else 0
        )

        self.found_start = not self.start_token
        self.stop_search_floor = 0
        self._pending = bytearray()
        self._output = bytearray()
        self._terminal = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self._terminal

    @property
    def has_tokens(self) -> bool:
        return bool(self.start_token or self.stop_token)

    @property
    def pending_size(self) -> int:
        """Number of received bytes not yet scanned."""
        return len(self._pending)

    @property
    def result(self) -> bytes:
        """Bytes confirmed as part of the result so far, capped at the budget."""
        return bytes(self._output[: self.max_bytes])

    # ------------------------------------------------------------------
    # Feeding
    # ------------------------------------------------------------------

    def feed(self, chunk: bytes, *, force: bool = False) -> ScanOutcome:
        """Consume one chunk of the body.

        Chunks arriving after the scan became terminal are ignored.

        Args:
            chunk: Next slice of the body (may be empty).
            force: Scan whatever is pending even if the buffer is not full.
                Used once at end of stream.

        Returns:
            :attr:`ScanOutcome.TERMINAL` once no further chunks are needed.
        """
        if self._terminal:
            return ScanOutcome.TERMINAL
        if not self.has_tokens:
            return self._count(chunk)
        return self._scan(chunk, force)

    def finish(self) -> bytes:
        """Flush pending bytes at end of stream and return the result."""
        if not self._terminal and self._pending:
            self.feed(b"", force=True)
        return self.result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _count(self, chunk: bytes) -> ScanOutcome:
        remaining = self.max_bytes - len(self._output)
        if len(chunk) < remaining:
            self._output += chunk
            return ScanOutcome.CONTINUE
        self._output += chunk[:remaining]
        return self._terminate("byte budget reached")

    def _scan(self, chunk: bytes, force: bool) -> ScanOutcome:
        pending = self._pending
        pending += chunk
        if len(pending) < self.effective_buffer_size and not force:
            return ScanOutcome.CONTINUE

        if not self.found_start:
            index = pending.find(self.start_token)
            if index < 0:
                keep = len(self.start_token) - 1
                del pending[: max(len(pending) - keep, 0)]
                return ScanOutcome.CONTINUE
            del pending[: index + len(self.start_token)]
            if self.start_included:
                self._output[:] = self.start_token
                self.stop_search_floor = len(self.start_token)
            self.found_start = True

        output = self._output
        output += pending
        pending.clear()

        if self.stop_token:
            index = output.find(self.stop_token, self.stop_search_floor)
            if index >= 0:
                end = index + (len(self.stop_token) if self.stop_included else 0)
                del output[min(end, self.max_bytes):]
                return self._terminate("stop token found")
            self.stop_search_floor = max(
                self.stop_search_floor, len(output) - (len(self.stop_token) - 1)
            )

        if len(output) < self.max_bytes + self._stop_slack:
            return ScanOutcome.CONTINUE
        del output[self.max_bytes:]
        return self._terminate("byte budget reached")

    def _terminate(self, reason: str) -> ScanOutcome:
        self._terminal = True
        self._pending.clear()
        logger.debug("scraper: scan terminal (%s) after %d bytes", reason, len(self._output))
        return ScanOutcome.TERMINAL
