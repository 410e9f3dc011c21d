"""Token-windowed HTML fragment scraper.

Sub-modules:
- ``config``          - constants and tuning parameters
- ``url_validation``  - http(s) URL acceptance and hostname-spoofing checks
- ``headers``         - raw header block parsing, video-host detection
- ``options``         - ``ScraperOptions`` request configuration and timings
- ``stream_scanner``  - incremental start/stop-token scanner
- ``rate_limiter``    - per-hostname request-frequency limiter
- ``http_fetcher``    - httpx exchange driver with manual redirect handling
- ``loader``          - ``fetch_fragment`` / ``fetch_fragment_as_document``
- ``title``           - ``lookup_title``
"""
