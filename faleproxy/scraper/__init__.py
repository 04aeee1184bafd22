"""Scraper package — fetch a page and rewrite it for the proxy."""

from __future__ import annotations

from typing import Optional

from faleproxy.logger import get_logger
from faleproxy.scraper.errors import FetchError, ParseError, ProxyError, ValidationError
from faleproxy.scraper.fetcher import fetch_url, normalize_url
from faleproxy.scraper.models import RawPage, RewrittenPage
from faleproxy.scraper.rewriter import replace_yale, rewrite_html

logger = get_logger(__name__)


def proxy_page(url: Optional[str]) -> RewrittenPage:
    """Normalize *url*, fetch it and return the rewritten page.

    Raises:
        ValidationError: If *url* is missing or empty.
        FetchError: If the outbound request fails.
        ParseError: If the fetched document cannot be rewritten.
    """
    if not url:
        raise ValidationError("URL is required")

    url = normalize_url(url)
    raw = fetch_url(url)

    try:
        return rewrite_html(raw.html, raw.url)
    except Exception as exc:
        logger.exception("Rewriting %s failed", raw.url)
        raise ParseError(str(exc)) from exc


__all__ = [
    "proxy_page",
    "fetch_url",
    "normalize_url",
    "rewrite_html",
    "replace_yale",
    "RawPage",
    "RewrittenPage",
    "ProxyError",
    "ValidationError",
    "FetchError",
    "ParseError",
]
