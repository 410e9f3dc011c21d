"""Unit tests for ScraperOptions validation, redirects and timings."""

from __future__ import annotations

import pytest

from snippet_scraper.config.settings import get_settings
from snippet_scraper.core.exceptions import (
    ConfigurationError,
    InvalidHeaderError,
    InvalidUrlError,
    RedirectLimitError,
)
from snippet_scraper.scraper.options import ScraperOptions, ScraperTimings, TimingPhase

_URL = "https://example.com/forum/thread/1"


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_defaults_follow_settings(self) -> None:
        opts = ScraperOptions(_URL)
        settings = get_settings()

        assert opts.chunk_buffer_size == settings.default_chunk_buffer_size == 6000
        assert opts.timeout_ms == settings.default_timeout_ms == 5000
        assert opts.user_agent == settings.default_user_agent
        assert opts.max_bytes == 0
        assert opts.max_redirects == 0
        assert opts.restrict_request_frequency is True
        assert opts.compact is False
        assert opts.transform is None
        assert opts.start_token is None
        assert opts.stop_token is None

    def test_settings_overridden_by_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SNIPPET_SCRAPER_DEFAULT_TIMEOUT_MS", "1234")
        monkeypatch.setenv("SNIPPET_SCRAPER_DEFAULT_USER_AGENT", "probe/2.0")
        get_settings.cache_clear()

        opts = ScraperOptions(_URL)

        assert opts.timeout_ms == 1234
        assert opts.user_agent == "probe/2.0"

    def test_invalid_url_rejected_at_construction(self) -> None:
        with pytest.raises(InvalidUrlError):
            ScraperOptions("ftp://example.com/")


# ---------------------------------------------------------------------------
# Setters
# ---------------------------------------------------------------------------


class TestSetters:
    def test_setters_chain(self) -> None:
        opts = (
            ScraperOptions(_URL)
            .with_start_token("<main", True)
            .with_stop_token("</main>", True)
            .with_max_bytes(100)
            .with_chunk_buffer_size(10)
            .with_timeout_ms(250)
            .with_max_redirects(2)
            .with_user_agent("agent/1")
            .with_headers("x-foo: 1")
            .with_request_frequency_restriction(False)
            .with_compact(True)
            .with_transform(str.upper)
        )

        assert opts.start_token == "<main" and opts.start_token_included is True
        assert opts.stop_token == "</main>" and opts.stop_token_included is True
        assert opts.max_bytes == 100
        assert opts.chunk_buffer_size == 10
        assert opts.timeout_ms == 250
        assert opts.max_redirects == 2
        assert opts.user_agent == "agent/1"
        assert opts.parsed_headers == {"x-foo": "1"}
        assert opts.restrict_request_frequency is False
        assert opts.compact is True
        assert opts.transform is str.upper

    def test_token_inclusion_defaults_to_excluded(self) -> None:
        opts = ScraperOptions(_URL).with_start_token("<a").with_stop_token("</a>")
        assert opts.start_token_included is False
        assert opts.stop_token_included is False

    @pytest.mark.parametrize("token", [None, ""])
    def test_empty_token_clears(self, token: str | None) -> None:
        opts = ScraperOptions(_URL).with_start_token("<a", True).with_stop_token("</a>")
        opts.with_start_token(token).with_stop_token(token)
        assert opts.start_token is None
        assert opts.stop_token is None

    @pytest.mark.parametrize("value", [0, 1, 10_000_000])
    def test_max_bytes_accepts_bounds(self, value: int) -> None:
        assert ScraperOptions(_URL).with_max_bytes(value).max_bytes == value

    @pytest.mark.parametrize("value", [-1, 10_000_001, "5", None, 5.9, float("inf")])
    def test_max_bytes_rejects_out_of_range(self, value: object) -> None:
        with pytest.raises(ConfigurationError, match="Illegal value for max bytes"):
            ScraperOptions(_URL).with_max_bytes(value)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [1, 4])
    def test_max_redirects_accepts_bounds(self, value: int) -> None:
        assert ScraperOptions(_URL).with_max_redirects(value).max_redirects == value

    @pytest.mark.parametrize("value", [0, 5, -1, 2.5, True])
    def test_max_redirects_rejects_out_of_range(self, value: object) -> None:
        with pytest.raises(ConfigurationError, match="Illegal value for max redirects"):
            ScraperOptions(_URL).with_max_redirects(value)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [1, 0, -5, float("nan"), "100"])
    def test_timeout_rejects_invalid(self, value: object) -> None:
        with pytest.raises(ConfigurationError, match="Invalid timeout value"):
            ScraperOptions(_URL).with_timeout_ms(value)  # type: ignore[arg-type]

    def test_chunk_buffer_size_rejects_negative(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid chunk buffer size"):
            ScraperOptions(_URL).with_chunk_buffer_size(-1)

    def test_chunk_buffer_size_accepts_zero(self) -> None:
        assert ScraperOptions(_URL).with_chunk_buffer_size(0).chunk_buffer_size == 0

    @pytest.mark.parametrize("value", [2.5, float("nan")])
    def test_chunk_buffer_size_rejects_fractional(self, value: float) -> None:
        with pytest.raises(ConfigurationError, match="Invalid chunk buffer size"):
            ScraperOptions(_URL).with_chunk_buffer_size(value)  # type: ignore[arg-type]

    def test_whole_float_accepted_as_int(self) -> None:
        opts = ScraperOptions(_URL).with_max_bytes(500.0).with_chunk_buffer_size(64.0)  # type: ignore[arg-type]
        assert opts.max_bytes == 500 and isinstance(opts.max_bytes, int)
        assert opts.chunk_buffer_size == 64

    def test_transform_must_be_callable(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid transform function"):
            ScraperOptions(_URL).with_transform("upper")  # type: ignore[arg-type]

    def test_user_agent_must_be_string(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid user agent"):
            ScraperOptions(_URL).with_user_agent(42)  # type: ignore[arg-type]

    def test_empty_user_agent_sends_none(self) -> None:
        assert ScraperOptions(_URL).with_user_agent("").user_agent is None

    def test_headers_validated_eagerly(self) -> None:
        opts = ScraperOptions(_URL)
        with pytest.raises(InvalidHeaderError, match='"baz: 666"'):
            opts.with_headers("x-foo: 1\nbaz: 666")
        assert opts.parsed_headers == {}

    def test_headers_cleared_with_none(self) -> None:
        opts = ScraperOptions(_URL).with_headers("x-foo: 1").with_headers(None)
        assert opts.headers is None
        assert opts.parsed_headers == {}


# ---------------------------------------------------------------------------
# Redirects
# ---------------------------------------------------------------------------


class TestRedirects:
    def test_absolute_redirect(self) -> None:
        opts = ScraperOptions(_URL).with_max_redirects(1)

        opts.update_for_redirect("https://other.example.org/landing")

        assert str(opts.url) == "https://other.example.org/landing"
        assert opts.redirects_so_far == 1
        assert opts.is_redirect() is True

    def test_root_relative_redirect_uses_current_origin(self) -> None:
        opts = ScraperOptions("https://example.com:8443/a/b?c=d").with_max_redirects(1)
        opts.update_for_redirect("/login?next=1")
        assert str(opts.url) == "https://example.com:8443/login?next=1"

    def test_path_relative_redirect(self) -> None:
        opts = ScraperOptions("https://example.com/a/b").with_max_redirects(1)
        opts.update_for_redirect("c")
        assert str(opts.url) == "https://example.com/a/c"

    def test_default_budget_allows_no_redirects(self) -> None:
        opts = ScraperOptions(_URL)
        with pytest.raises(RedirectLimitError, match=r"Redirect limit exceeded \(0\)"):
            opts.update_for_redirect("/elsewhere")
        assert opts.is_redirect() is False

    def test_budget_exhausted(self) -> None:
        opts = ScraperOptions(_URL).with_max_redirects(2)
        opts.update_for_redirect("/one")
        opts.update_for_redirect("/two")

        with pytest.raises(RedirectLimitError) as exc_info:
            opts.update_for_redirect("/three")

        assert exc_info.value.max_redirects == 2
        assert opts.redirects_so_far == 2
        assert opts.url.path == "/two"

    def test_redirect_target_revalidated(self) -> None:
        opts = ScraperOptions(_URL).with_max_redirects(3)
        with pytest.raises(InvalidUrlError):
            opts.update_for_redirect("http://evil.c℀.victim.test/")
        with pytest.raises(InvalidUrlError):
            opts.update_for_redirect("/images/banner.png")
        assert opts.redirects_so_far == 0

    def test_ensure_redirect_allowed_tracks_budget(self) -> None:
        opts = ScraperOptions(_URL).with_max_redirects(1)
        opts.ensure_redirect_allowed()
        opts.update_for_redirect("/one")
        with pytest.raises(RedirectLimitError):
            opts.ensure_redirect_allowed()


# ---------------------------------------------------------------------------
# Timings
# ---------------------------------------------------------------------------


class TestTimings:
    def test_initial_snapshot_is_zero(self) -> None:
        assert ScraperOptions(_URL).get_timings() == ScraperTimings()

    def test_start_stop_records_non_negative_duration(self) -> None:
        opts = ScraperOptions(_URL)
        opts.start_measure(TimingPhase.SCRAPE).stop_measure(TimingPhase.SCRAPE)
        assert opts.get_timings().scrape >= 0

    def test_stop_without_start_records_zero(self) -> None:
        opts = ScraperOptions(_URL)
        opts.stop_measure(TimingPhase.TO_DOM)
        assert opts.get_timings().to_dom == 0

    def test_measure_context_manager_records_on_error(self) -> None:
        opts = ScraperOptions(_URL)
        with pytest.raises(RuntimeError), opts.measure(TimingPhase.LOAD):
            raise RuntimeError("boom")
        assert opts.get_timings().load >= 0

    def test_snapshot_is_read_only(self) -> None:
        timings = ScraperOptions(_URL).get_timings()
        with pytest.raises(AttributeError):
            timings.load = 5  # type: ignore[misc]
