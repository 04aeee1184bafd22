"""Proxy endpoint.

Routes
------
POST /fetch    Body: {"url": "example.com"}  or  url=example.com (form)  → proxy_page
"""

from __future__ import annotations

import json
from typing import Any, Optional

import pydantic
from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel

from faleproxy.logger import get_logger
from faleproxy.scraper import FetchError, ProxyError, proxy_page

router = APIRouter()

logger = get_logger(__name__)

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FetchRequest(BaseModel):
    # Optional so a missing value gets the proxy's own 400, not a 422.
    url: Optional[str] = None


class FetchResponse(BaseModel):
    success: bool
    content: str
    title: str
    originalUrl: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def read_fetch_request(request: Request) -> FetchRequest:
    """Build a :class:`FetchRequest` from a JSON or form-encoded body.

    An empty body yields an empty request.  Undecodable JSON and values of
    the wrong type raise :class:`RequestValidationError`.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        data: Any = dict(await request.form())
    else:
        raw = await request.body()
        if not raw.strip():
            return FetchRequest()
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise RequestValidationError(
                [{"loc": ("body",), "msg": f"JSON decode error: {exc}", "type": "json_invalid"}]
            ) from exc

    try:
        return FetchRequest.model_validate(data)
    except pydantic.ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("/fetch", response_model=FetchResponse)
def fetch(body: FetchRequest = Depends(read_fetch_request)) -> dict[str, Any]:
    """Fetch a page, rewrite Yale to Fale, and return the transformed HTML.

    Declared with ``def`` so FastAPI runs the blocking fetch on its worker
    thread pool.  Failures are translated to ``{"error": ...}`` bodies by the
    handlers registered in :func:`faleproxy.api.app.create_app`.
    """
    url = body.url
    try:
        page = proxy_page(url)
    except ProxyError:
        raise
    except Exception as exc:
        logger.exception("Unexpected failure proxying %r", url)
        raise FetchError(str(exc)) from exc
    return page.to_payload()
