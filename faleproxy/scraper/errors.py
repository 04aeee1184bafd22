"""Exceptions raised by the proxy pipeline.

Each error carries the HTTP status it maps to; the API layer turns them into
``{"error": ...}`` JSON bodies.
"""

from __future__ import annotations


class ProxyError(Exception):
    """Base class for every failure surfaced to a caller."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ProxyError):
    """The request itself is unusable (e.g. no URL supplied)."""

    status_code = 400


class FetchError(ProxyError):
    """The outbound GET failed: network, DNS, timeout or non-2xx status."""


class ParseError(ProxyError):
    """The fetched document could not be parsed or rewritten."""
