"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from faleproxy.api import app

    uvicorn faleproxy.api:app --reload
"""

from faleproxy.api.app import app

__all__ = ["app"]
