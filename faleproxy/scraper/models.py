"""Data models for the proxy pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int
    content_type: str = ""


@dataclass
class RewrittenPage:
    """A fetched page after text substitution and URL absolutization."""

    url: str
    content: str
    title: str

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body sent back to ``POST /fetch`` callers."""
        return {
            "success": True,
            "content": self.content,
            "title": self.title,
            "originalUrl": self.url,
        }
