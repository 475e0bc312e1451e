"""Shared candidate filter applied by every extraction strategy."""

from __future__ import annotations

# Column labels that show up when a header row is mistaken for data.
HEADER_SENDERS = frozenset({"from", "sender", "field"})
HEADER_MESSAGES = frozenset({"message", "sms", "content", "description"})


def is_valid_message(sender: str, message: str) -> bool:
    """Return ``True`` if ``(sender, message)`` looks like a real SMS.

    Both fields must be non-empty after trimming, and neither may be exactly
    (case-insensitively) one of the known header tokens.
    """
    clean_sender = sender.strip()
    clean_message = message.strip()
    if not clean_sender or not clean_message:
        return False
    if clean_sender.lower() in HEADER_SENDERS:
        return False
    if clean_message.lower() in HEADER_MESSAGES:
        return False
    return True
