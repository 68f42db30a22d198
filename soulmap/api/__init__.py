"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from soulmap.api import app

    uvicorn soulmap.api:app --reload
"""

from soulmap.api.app import app, create_app

__all__ = ["app", "create_app"]
