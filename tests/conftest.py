"""Shared pytest fixtures for snippet scraper tests.

Fixture summary
---------------
_reset_process_state  - (autouse) clears the settings cache and the
                        process-wide host rate limiter around every test.
sample_page           - A small HTML page with a title, a list and a footer.
html_headers          - ``Content-Type`` headers for an HTML response.

No network access is needed: HTTP-level tests mock httpx with ``respx`` or
``httpx.MockTransport``.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from snippet_scraper.config.settings import get_settings
from snippet_scraper.scraper.rate_limiter import get_host_rate_limiter

SAMPLE_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Hello &amp; World</title>
</head>
<body>
  <div id="page-body" class="content">
    <h1>Topics</h1>
    <ul>
      <li><a href="#foo">foo</a></li>
      <li>bar</li>
      <li>baz</li>
    </ul>
  </div>
  <div class="action-bar actions-jump">jump</div>
  <footer>the end</footer>
</body>
</html>
"""


@pytest.fixture(autouse=True)
def _reset_process_state() -> Iterator[None]:
    """Give every test a fresh settings object and an empty rate limiter."""
    get_settings.cache_clear()
    get_host_rate_limiter.cache_clear()
    yield
    get_host_rate_limiter().clear()
    get_host_rate_limiter.cache_clear()
    get_settings.cache_clear()


@pytest.fixture
def sample_page() -> str:
    return SAMPLE_PAGE


@pytest.fixture
def html_headers() -> dict[str, str]:
    return {"content-type": "text/html; charset=utf-8"}
