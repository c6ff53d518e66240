"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from fairmap.api import app

    uvicorn fairmap.api:app --reload
"""

from fairmap.api.app import app

__all__ = ["app"]
