"""Database initialisation.

``init_db(conn)`` is idempotent — safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

SCHEMA = """
CREATE TABLE IF NOT EXISTS phone_messages (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    phone_number_id TEXT    NOT NULL,
    sender          TEXT    NOT NULL,
    message         TEXT    NOT NULL,
    received_at     TEXT    NOT NULL,
    message_source  TEXT    NOT NULL DEFAULT 'scraping',
    raw_html        TEXT,
    created_at      INTEGER DEFAULT (strftime('%s', 'now')),
    UNIQUE (phone_number_id, sender, message)
);

CREATE INDEX IF NOT EXISTS idx_phone_messages_phone
    ON phone_messages (phone_number_id, received_at);
"""


def init_db(conn: sqlite3.Connection) -> None:
    """Create the message table and its index if they do not exist."""
    conn.executescript(SCHEMA)
