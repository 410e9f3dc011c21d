"""Exception hierarchy for the snippet scraper.

All custom exceptions subclass ``SnippetScraperError`` so that callers can
catch every scraper failure with a single ``except`` clause.

Hierarchy::

    SnippetScraperError
    ├── ConfigurationError
    │   ├── InvalidUrlError
    │   └── InvalidHeaderError          (line: str)
    ├── RequestFrequencyError           (retry_after: float)
    ├── RedirectLimitError              (max_redirects: int)
    ├── UnsupportedContentTypeError     (content_type: str, url: str)
    └── TransportError                  (url: str)
        └── FetchTimeoutError
"""

from __future__ import annotations


class SnippetScraperError(Exception):
    """Base class for all snippet scraper exceptions."""


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(SnippetScraperError):
    """Raised synchronously when a :class:`ScraperOptions` value is rejected.

    Configuration errors are never retried; the caller has to fix the input.
    """


class InvalidUrlError(ConfigurationError):
    """Raised for unparseable, non-HTTP(S), binary-media or spoofed URLs.

    The message is always ``"Invalid url"`` so that rejected (possibly
    malicious) input is not echoed into logs.
    """

    def __init__(self) -> None:
        super().__init__("Invalid url")


class InvalidHeaderError(ConfigurationError):
    """Raised when a line of a raw header block cannot be parsed.

    Args:
        line: The offending line, trimmed.
    """

    def __init__(self, line: str) -> None:
        super().__init__(f'Invalid header line: "{line}"')
        self.line = line


# ---------------------------------------------------------------------------
# Fetch exceptions
# ---------------------------------------------------------------------------


class RequestFrequencyError(SnippetScraperError):
    """Raised when a request to a host arrives before its rate window opens.

    The scraper never queues or retries; the caller must try again later.

    Args:
        retry_after: Seconds until the host's window opens.
    """

    def __init__(self, retry_after: float = 0.0) -> None:
        super().__init__("Too frequent requests")
        self.retry_after = retry_after


class RedirectLimitError(SnippetScraperError):
    """Raised when following a redirect would exceed the hop budget.

    Args:
        max_redirects: The configured hop budget.
    """

    def __init__(self, max_redirects: int) -> None:
        super().__init__(f"Redirect limit exceeded ({max_redirects})")
        self.max_redirects = max_redirects


class UnsupportedContentTypeError(SnippetScraperError):
    """Raised when a non-redirect response is not an HTML document.

    Args:
        content_type: The response ``Content-Type`` header (may be empty).
        url: The URL that produced the response.
    """

    def __init__(self, content_type: str, url: str) -> None:
        super().__init__(f'Unsupported content type "{content_type}" for url "{url}"')
        self.content_type = content_type
        self.url = url


class TransportError(SnippetScraperError):
    """Raised when the underlying connection fails.

    Args:
        message: Human-readable description of the failure.
        url: The URL being fetched when the failure occurred.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class FetchTimeoutError(TransportError):
    """Raised when a request exceeds its configured timeout."""
