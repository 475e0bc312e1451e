"""Storage for scraped SMS messages (``phone_messages`` table).

Rows are unique per ``(phone_number_id, sender, message)``; saving the same
scrape twice is a no-op for messages already stored.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Iterable, List

from smsdesk.scraper.models import ScrapedMessage


@dataclass
class StoredMessage:
    id: int
    phone_number_id: str
    sender: str
    message: str
    received_at: str
    message_source: str
    raw_html: str | None
    created_at: int


def _row_to_message(row: sqlite3.Row) -> StoredMessage:
    return StoredMessage(
        id=row["id"],
        phone_number_id=row["phone_number_id"],
        sender=row["sender"],
        message=row["message"],
        received_at=row["received_at"],
        message_source=row["message_source"],
        raw_html=row["raw_html"],
        created_at=row["created_at"],
    )


def save_messages(
    conn: sqlite3.Connection,
    phone_number_id: str,
    messages: Iterable[ScrapedMessage],
    source: str = "scraping",
) -> int:
    """Insert *messages* for *phone_number_id*, ignoring duplicates.

    Returns:
        The number of rows actually inserted.
    """
    rows = [
        (phone_number_id, m.sender, m.message, m.received_at, source, m.raw_html)
        for m in messages
    ]
    if not rows:
        return 0
    with conn:
        before = conn.total_changes
        conn.executemany(
            """
            INSERT OR IGNORE INTO phone_messages
                (phone_number_id, sender, message, received_at, message_source, raw_html)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        return conn.total_changes - before


def list_messages(conn: sqlite3.Connection, phone_number_id: str) -> List[StoredMessage]:
    """Return stored messages for *phone_number_id*, newest first."""
    rows = conn.execute(
        """
        SELECT * FROM phone_messages
        WHERE phone_number_id = ?
        ORDER BY received_at DESC, id DESC
        """,
        (phone_number_id,),
    ).fetchall()
    return [_row_to_message(r) for r in rows]
