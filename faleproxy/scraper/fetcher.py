"""HTTP fetcher for pages relayed through the proxy."""

from __future__ import annotations

import re
from typing import Any, Dict

import httpx

from faleproxy.config import settings
from faleproxy.logger import get_logger
from faleproxy.scraper.errors import FetchError
from faleproxy.scraper.models import RawPage

logger = get_logger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_url(url: str) -> str:
    """Return *url* with ``https://`` prepended when it has no http(s) scheme."""
    if not _SCHEME_RE.match(url):
        return "https://" + url
    return url


def _client_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "headers": {"User-Agent": settings.user_agent},
        "follow_redirects": True,
    }
    if settings.request_timeout is not None:
        options["timeout"] = settings.request_timeout
    return options


def fetch_url(url: str) -> RawPage:
    """Fetch *url* with a single GET and return a :class:`RawPage`.

    No retries are attempted.  Transport failures (connection refused, DNS,
    timeouts), malformed URLs and 4xx/5xx responses all surface as a
    :class:`FetchError` carrying the httpx message.
    """
    logger.info("Fetching %s", url)
    try:
        with httpx.Client(**_client_options()) as client:
            response = client.get(url)
            response.raise_for_status()
            html = response.text
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(str(exc)) from exc

    logger.debug("HTTP %s from %s (%d chars)", response.status_code, url, len(html))
    return RawPage(
        url=url,
        html=html,
        status_code=response.status_code,
        content_type=response.headers.get("content-type", ""),
    )
