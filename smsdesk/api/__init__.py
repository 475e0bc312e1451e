"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from smsdesk.api import app

    uvicorn smsdesk.api:app --reload
"""

from smsdesk.api.app import app

__all__ = ["app"]
