"""Timestamp normalisation for the loosely formatted "Added" column.

Provider pages print times in a handful of shapes (ISO-ish, European dotted
dates, slashed dates, bare clock times).  :func:`parse_timestamp` folds all
of them into a single UTC ISO-8601 instant and falls back to "now" whenever
the text cannot be understood.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as dateparser

from smsdesk.scraper.models import to_iso

logger = logging.getLogger(__name__)

# Tried in order; the first pattern that matches decides the interpretation.
_PATTERNS = (
    re.compile(r"(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})"),
    re.compile(r"(\d{2}\.\d{2}\.\d{4} \d{2}:\d{2})"),
    re.compile(r"(\d{2}/\d{2}/\d{4} \d{2}:\d{2})"),
    re.compile(r"(\d{2}:\d{2}:\d{2})"),
    re.compile(r"(\d{2}:\d{2})"),
)

_BARE_TIME = re.compile(r"^\d{2}:\d{2}")

_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _reorder_day_first(value: str, separator: str) -> str:
    """Turn ``DD<sep>MM<sep>YYYY [time]`` into ``YYYY-MM-DD [time]``."""
    date_part, _, time_part = value.partition(" ")
    pieces = date_part.split(separator)
    if len(pieces) != 3:
        return value
    day, month, year = pieces
    reordered = f"{year}-{month}-{day}"
    return f"{reordered} {time_part}" if time_part else reordered


def _reassemble(matched: str, today: str) -> str:
    if "." in matched:
        return _reorder_day_first(matched, ".")
    if "/" in matched:
        return _reorder_day_first(matched, "/")
    if _BARE_TIME.match(matched):
        return f"{today} {matched}"
    return matched


def _parse_reassembled(value: str) -> Optional[datetime]:
    for fmt in _FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def _parse_direct(text: str) -> Optional[datetime]:
    try:
        return dateparser.parse(text)
    except (ValueError, OverflowError, TypeError):
        return None


def parse_timestamp(time_text: str) -> str:
    """Normalise *time_text* to ``YYYY-MM-DDTHH:MM:SS.sssZ``.

    Dotted and slashed dates are read day-first.  Bare clock times are pinned
    to today's UTC date.  Anything unparseable yields the current instant;
    this function never raises.
    """
    now = _now()
    text = (time_text or "").strip()
    if not text:
        return to_iso(now)

    parsed: Optional[datetime] = None
    for pattern in _PATTERNS:
        match = pattern.search(text)
        if match:
            parsed = _parse_reassembled(_reassemble(match.group(1), now.strftime("%Y-%m-%d")))
            break

    if parsed is None:
        parsed = _parse_direct(text)

    if parsed is None:
        logger.debug("Unparseable timestamp %r, using current time", time_text)
        return to_iso(now)
    try:
        return to_iso(parsed)
    except (OverflowError, ValueError):
        # Converting to UTC can leave the representable year range.
        return to_iso(now)
