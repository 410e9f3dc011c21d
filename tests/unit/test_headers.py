"""Unit tests for header block parsing and video-host detection."""

from __future__ import annotations

import pytest

from snippet_scraper.core.exceptions import InvalidHeaderError
from snippet_scraper.scraper.headers import is_video_host_url, parse_header_block


class TestParseHeaderBlock:
    def test_parses_simple_block(self) -> None:
        assert parse_header_block("x-foo: 123\nx-bar:abc") == {"x-foo": "123", "x-bar": "abc"}

    def test_trims_names_and_values(self) -> None:
        block = "x-foo: 123 \nx-bar: abc   \n x-baz: 666\nx-go:now"
        assert parse_header_block(block) == {
            "x-foo": "123",
            "x-bar": "abc",
            "x-baz": "666",
            "x-go": "now",
        }

    @pytest.mark.parametrize(
        "block",
        ["x-foo  : 123", "x-foo  :     123", "x-foo  :     123    ", "x-foo  :123    ", " x-foo  :123    "],
    )
    def test_whitespace_variants(self, block: str) -> None:
        assert parse_header_block(block) == {"x-foo": "123"}

    def test_whitelisted_names_without_hyphen(self) -> None:
        block = "Cookie: a=1; b=2\r\nauthorization: Bearer abc\nAccept: text/html"
        assert parse_header_block(block) == {
            "Cookie": "a=1; b=2",
            "authorization": "Bearer abc",
            "Accept": "text/html",
        }

    def test_blank_lines_skipped(self) -> None:
        assert parse_header_block("\n\nAccept-Language: da\n\n") == {"Accept-Language": "da"}

    @pytest.mark.parametrize("block", [None, ""])
    def test_empty_input(self, block: str | None) -> None:
        assert parse_header_block(block) == {}

    def test_rejects_name_without_hyphen(self) -> None:
        with pytest.raises(InvalidHeaderError, match='Invalid header line: "baz: 666"'):
            parse_header_block("baz: 666")

    def test_error_names_offending_line_in_block(self) -> None:
        with pytest.raises(InvalidHeaderError) as exc_info:
            parse_header_block("x-foo: 123 \nx-bar: abc   \n baz: 666\nx-go:now")
        assert exc_info.value.line == "baz: 666"

    def test_rejects_quoted_value(self) -> None:
        with pytest.raises(InvalidHeaderError):
            parse_header_block('x-foo: "quoted"')


class TestIsVideoHostUrl:
    @pytest.mark.parametrize("url", [None, "", "http://foo.bar", "https://foo.bar", "https://youtube.com/channel/x"])
    def test_other_urls(self, url: str | None) -> None:
        assert is_video_host_url(url) is False

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=abc123",
            "https://youtube.com/watch?v=abc123",
            "https://www.youtube.com/shorts/abc123",
            "https://youtu.be/abc123",
            "http://youtu.be/abc123",
        ],
    )
    def test_video_urls(self, url: str) -> None:
        assert is_video_host_url(url) is True
