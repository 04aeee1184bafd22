"""FastAPI application factory.

Routes
------
    POST /fetch   — fetch a page and return its rewritten HTML
    GET  /        — landing page from ``settings.static_dir`` (when present)

Errors
------
Every error is rendered as ``{"error": "..."}``: malformed bodies and a
missing URL with status 400, fetch and rewrite failures with status 500 and
the ``"Failed to fetch content: "`` prefix.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from faleproxy.config import settings
from faleproxy.logger import get_logger
from faleproxy.scraper import ProxyError, ValidationError

from faleproxy.api.routers import proxy as proxy_router

logger = get_logger(__name__)

FAILURE_PREFIX = "Failed to fetch content: "


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    """Render a :class:`ProxyError` as the proxy's JSON error body."""
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    logger.error("Error fetching URL: %s", exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": f"{FAILURE_PREFIX}{exc.message}"},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render a malformed request body as a 400 with the proxy's error shape."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "malformed request body")
    detail = f"{field}: {message}" if field else message
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Invalid request: {detail}"},
    )


def _mount_static(app: FastAPI) -> None:
    """Serve the landing page and its assets if the static directory exists."""
    static_dir = settings.static_dir
    if not static_dir.is_dir():
        logger.info("Static directory %s not found; GET / is disabled", static_dir)
        return

    index_path = settings.index_path

    @app.get("/", include_in_schema=False)
    def index() -> FileResponse:
        return FileResponse(index_path)

    app.mount("/", StaticFiles(directory=static_dir), name="static")


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Faleproxy",
        description=(
            "Fetches a web page, replaces Yale with Fale in its text, "
            "absolutizes relative resource URLs and returns the result."
        ),
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(proxy_router.router, tags=["proxy"])

    # Mounted last: a catch-all mount on "/" would shadow routes added after it.
    _mount_static(app)

    return app


# Module-level instance used by uvicorn:
#   uvicorn faleproxy.api.app:app --reload
app = create_app()
