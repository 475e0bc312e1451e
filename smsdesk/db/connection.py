"""SQLite connection factory.

Usage::

    from smsdesk.db.connection import get_connection

    conn = get_connection()
    conn.execute("SELECT 1")
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from smsdesk.config import settings


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.

    Returns:
        A :class:`sqlite3.Connection` with ``row_factory`` set to
        :class:`sqlite3.Row` and WAL journalling enabled.
    """
    path = db_path or settings.db_path

    # Create parent directory if needed (no-op for `:memory:`)
    if str(path) != ":memory:":
        settings.ensure_workspace()

    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn
