"""Command-line entry point for the snippet scraper.

Usage::

    snippet-scraper title https://example.com/
    snippet-scraper fetch https://example.com/ --start "<main" --include-start \
        --stop "</main>" --max-bytes 50000 --compact

Exit codes:
    0 - Success.
    1 - Invalid options or a failed fetch.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from snippet_scraper.config.settings import get_settings
from snippet_scraper.core.exceptions import SnippetScraperError
from snippet_scraper.core.logging_config import configure_logging
from snippet_scraper.scraper.loader import fetch_fragment
from snippet_scraper.scraper.options import ScraperOptions
from snippet_scraper.scraper.title import lookup_title


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snippet-scraper",
        description="Fetch a token-delimited fragment of a remote HTML page.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging verbosity (default: SNIPPET_SCRAPER_LOG_LEVEL or INFO).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    title = sub.add_parser("title", help="Print the page title.")
    title.add_argument("url")
    title.add_argument("--skip-rate-limit", action="store_true")

    fetch = sub.add_parser("fetch", help="Print the fragment between two tokens.")
    fetch.add_argument("url")
    fetch.add_argument("--start", default=None, help="Start token.")
    fetch.add_argument("--include-start", action="store_true")
    fetch.add_argument("--stop", default=None, help="Stop token.")
    fetch.add_argument("--include-stop", action="store_true")
    fetch.add_argument("--max-bytes", type=int, default=0)
    fetch.add_argument("--max-redirects", type=int, default=None)
    fetch.add_argument("--timeout-ms", type=int, default=None)
    fetch.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="LINE",
        help='Custom header, e.g. "Accept-Language: da". Repeatable.',
    )
    fetch.add_argument("--compact", action="store_true")
    fetch.add_argument("--no-rate-limit", action="store_true")
    return parser


def _options_from_args(args: argparse.Namespace) -> ScraperOptions:
    options = (
        ScraperOptions(args.url)
        .with_start_token(args.start, args.include_start)
        .with_stop_token(args.stop, args.include_stop)
        .with_max_bytes(args.max_bytes)
        .with_compact(args.compact)
        .with_request_frequency_restriction(not args.no_rate_limit)
    )
    if args.max_redirects is not None:
        options.with_max_redirects(args.max_redirects)
    if args.timeout_ms is not None:
        options.with_timeout_ms(args.timeout_ms)
    if args.header:
        options.with_headers("\n".join(args.header))
    return options


async def _run(args: argparse.Namespace) -> str:
    if args.command == "title":
        return await lookup_title(args.url, args.skip_rate_limit)
    return await fetch_fragment(_options_from_args(args))


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    try:
        output = asyncio.run(_run(args))
    except SnippetScraperError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
