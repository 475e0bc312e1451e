"""Database layer package.

Public re-exports so callers can write::

    from smsdesk.db import get_connection, init_db
    from smsdesk.db import list_messages, save_messages
"""

from smsdesk.db.connection import get_connection
from smsdesk.db.messages import StoredMessage, list_messages, save_messages
from smsdesk.db.migrations import init_db

__all__ = ["get_connection", "init_db", "save_messages", "list_messages", "StoredMessage"]
