"""Tests for URL normalization and the httpx-based fetcher.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made during ``fetch_url`` tests.
"""

from __future__ import annotations

import httpx
import pytest
import respx

from faleproxy.scraper.errors import FetchError
from faleproxy.scraper.fetcher import _client_options, fetch_url, normalize_url
from faleproxy.scraper.models import RawPage


_SIMPLE_HTML = "<html><head><title>Example</title></head><body>Test</body></html>"


# ---------------------------------------------------------------------------
# normalize_url
# ---------------------------------------------------------------------------

class TestNormalizeUrl:
    def test_adds_https_when_scheme_missing(self) -> None:
        assert normalize_url("example.com") == "https://example.com"

    def test_keeps_https(self) -> None:
        assert normalize_url("https://example.com/a") == "https://example.com/a"

    def test_keeps_http(self) -> None:
        assert normalize_url("http://example.com") == "http://example.com"

    def test_scheme_match_is_case_insensitive(self) -> None:
        assert normalize_url("HTTPS://Example.com") == "HTTPS://Example.com"

    def test_other_schemes_get_prefixed(self) -> None:
        assert normalize_url("ftp://example.com") == "https://ftp://example.com"


# ---------------------------------------------------------------------------
# fetch_url
# ---------------------------------------------------------------------------

class TestFetchUrl:
    def test_successful_fetch_returns_raw_page(self) -> None:
        with respx.mock:
            respx.get("https://example.com/article").mock(
                return_value=httpx.Response(
                    200, text=_SIMPLE_HTML, headers={"content-type": "text/html"}
                )
            )
            raw = fetch_url("https://example.com/article")

        assert isinstance(raw, RawPage)
        assert raw.url == "https://example.com/article"
        assert raw.status_code == 200
        assert raw.html == _SIMPLE_HTML
        assert raw.content_type.startswith("text/html")

    def test_sends_browser_user_agent(self) -> None:
        with respx.mock:
            route = respx.get("https://example.com/").mock(
                return_value=httpx.Response(200, text=_SIMPLE_HTML)
            )
            fetch_url("https://example.com/")

        user_agent = route.calls.last.request.headers["User-Agent"]
        assert user_agent.startswith("Mozilla/5.0")
        assert "Chrome/" in user_agent

    def test_follows_redirects(self) -> None:
        with respx.mock:
            respx.get("https://example.com/old").mock(
                return_value=httpx.Response(
                    301, headers={"Location": "https://example.com/new"}
                )
            )
            respx.get("https://example.com/new").mock(
                return_value=httpx.Response(200, text=_SIMPLE_HTML)
            )
            raw = fetch_url("https://example.com/old")

        assert raw.status_code == 200
        assert raw.html == _SIMPLE_HTML

    def test_http_error_raises_fetch_error(self) -> None:
        with respx.mock:
            respx.get("https://example.com/missing").mock(
                return_value=httpx.Response(404, text="Not Found")
            )
            with pytest.raises(FetchError) as exc_info:
                fetch_url("https://example.com/missing")

        assert "404" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_connection_error_raises_fetch_error(self) -> None:
        with respx.mock:
            respx.get("https://error-site.com/").mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            with pytest.raises(FetchError, match="Connection refused"):
                fetch_url("https://error-site.com/")

    def test_timeout_raises_fetch_error(self) -> None:
        with respx.mock:
            respx.get("https://slow.example.com/").mock(
                side_effect=httpx.ReadTimeout("timed out")
            )
            with pytest.raises(FetchError, match="timed out"):
                fetch_url("https://slow.example.com/")


class TestClientOptions:
    def test_uses_httpx_default_timeout_when_unset(self, monkeypatch) -> None:
        monkeypatch.setattr("faleproxy.scraper.fetcher.settings.request_timeout", None)
        options = _client_options()

        assert "timeout" not in options
        assert options["follow_redirects"] is True

    def test_configured_timeout_is_passed(self, monkeypatch) -> None:
        monkeypatch.setattr("faleproxy.scraper.fetcher.settings.request_timeout", 7.5)
        assert _client_options()["timeout"] == 7.5
