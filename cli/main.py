"""Faleproxy CLI — entry-point for running the proxy by hand.

Usage:
    python cli/main.py --help

Commands:
    fetch   → fetch one URL through the rewrite pipeline and print it
    serve   → run the HTTP API with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from faleproxy.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from faleproxy.config import settings
from faleproxy.scraper import ProxyError, proxy_page

app = typer.Typer(
    name="faleproxy",
    help="Faleproxy — replace Yale with Fale in any web page.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------
@app.command("fetch")
def fetch(
    url: str = typer.Argument(..., help="URL to fetch (https:// is added if missing)."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the rewritten HTML to this file."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the same JSON payload POST /fetch returns."
    ),
) -> None:
    """Fetch a URL, rewrite it, and print the title and HTML."""
    try:
        page = proxy_page(url)
    except Exception as exc:
        message = exc.message if isinstance(exc, ProxyError) else str(exc)
        typer.echo(f"[fetch] Failed to fetch content: {message}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(page.to_payload(), indent=2))
        return

    typer.echo(f"[fetch] URL    : {page.url}")
    typer.echo(f"[fetch] Title  : {page.title or '(none)'}")

    if output is not None:
        output.write_text(page.content, encoding="utf-8")
        typer.echo(f"[fetch] Wrote {len(page.content)} chars to {output}")
        return

    typer.echo("")
    typer.echo(page.content)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option(settings.host, help="Interface to bind."),
    port: int = typer.Option(settings.port, help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    """Run the Faleproxy HTTP API."""
    import uvicorn

    typer.echo(f"[serve] Faleproxy server running at http://{host}:{port}")
    uvicorn.run("faleproxy.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
