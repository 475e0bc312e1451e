"""Message extraction: turns provider page HTML into :class:`ScrapedMessage` rows.

Provider pages come in several layouts, so extraction runs a fixed sequence
of strategies and keeps the output of the first one that finds anything:

1. table rows whose cells carry ``data-label`` attributes,
2. generic tables (first row of each table is the header),
3. ``div``/``section``/``article`` text containing a known template,
4. regular expressions over the whole page text.

Every candidate goes through :func:`~smsdesk.scraper.filters.is_valid_message`
before it is accepted.  Extraction is deterministic for a given input.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from smsdesk.scraper.filters import is_valid_message
from smsdesk.scraper.models import ScrapedMessage
from smsdesk.scraper.templates import KnownTemplate, get_templates
from smsdesk.scraper.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

FROM_LABEL = "From   :"
MESSAGE_LABEL = "Message   :"
ADDED_LABEL = "Added   :"

_WHITESPACE = re.compile(r"\s+")
_CELL_DELIMITERS = re.compile(r"[|\-:]")
_LINE_BREAK = re.compile(r"[|\n\r]")
_FROM_MESSAGE = re.compile(
    r"From:\s*([^\n\r]+)[\s\S]*?Message:\s*([^\n\r]+)",
    re.IGNORECASE | re.DOTALL,
)

# Minimum length for text recovered from a template phrase.
_MIN_TEMPLATE_TEXT = 10

Strategy = Callable[[BeautifulSoup, str, Sequence[KnownTemplate]], List[ScrapedMessage]]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _text(node: Optional[Tag]) -> str:
    """textContent of *node*, trimmed; empty string for a missing node."""
    if node is None:
        return ""
    return node.get_text().strip()


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _labeled_cell(row: Tag, label: str) -> Optional[Tag]:
    return row.select_one(f'td[data-label="{label}"]')


def _candidate(
    sender: str, message: str, time_text: str, raw_html: str
) -> Optional[ScrapedMessage]:
    if not is_valid_message(sender, message):
        return None
    return ScrapedMessage(
        sender=sender,
        message=message,
        received_at=parse_timestamp(time_text),
        raw_html=raw_html,
    )


def _template_pattern(template: KnownTemplate) -> re.Pattern[str]:
    return re.compile(
        rf"{re.escape(template.marker)}[\s\S]*?({re.escape(template.phrase)}[^|]*)",
        re.IGNORECASE,
    )


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _from_labeled_rows(
    soup: BeautifulSoup, html: str, templates: Sequence[KnownTemplate]
) -> List[ScrapedMessage]:
    """Strategy 1: ``<td data-label="From   :">`` style rows."""
    messages: List[ScrapedMessage] = []
    # Rows sitting directly under <table> belong to the implicit tbody.
    for row in soup.select("table tbody tr, table > tr"):
        sender = _text(_labeled_cell(row, FROM_LABEL))
        message = _text(_labeled_cell(row, MESSAGE_LABEL))
        time_text = _text(_labeled_cell(row, ADDED_LABEL))
        if not (sender and message and time_text):
            continue
        found = _candidate(sender, _collapse(message), time_text, str(row))
        if found is not None:
            messages.append(found)
    return messages


def _from_generic_tables(
    soup: BeautifulSoup, html: str, templates: Sequence[KnownTemplate]
) -> List[ScrapedMessage]:
    """Strategy 2: any table, first row of each table skipped as header."""
    messages: List[ScrapedMessage] = []
    for table in soup.find_all("table"):
        for row in table.select("tr")[1:]:
            cells = row.select("td, th")
            found: Optional[ScrapedMessage] = None
            if len(cells) >= 3:
                found = _candidate(
                    _text(cells[0]), _text(cells[1]), _text(cells[2]), str(row)
                )
            elif len(cells) == 2:
                found = _candidate(_text(cells[0]), _text(cells[1]), "", str(row))
            elif len(cells) == 1:
                parts = _CELL_DELIMITERS.split(_text(cells[0]))
                if len(parts) >= 2:
                    sender = parts[0].strip()
                    message = " ".join(parts[1:]).strip()
                    found = _candidate(sender, message, "", str(row))
            if found is not None:
                messages.append(found)
    return messages


def _from_containers(
    soup: BeautifulSoup, html: str, templates: Sequence[KnownTemplate]
) -> List[ScrapedMessage]:
    """Strategy 3: block elements whose text holds a known template phrase."""
    messages: List[ScrapedMessage] = []
    for container in soup.find_all(["div", "section", "article"]):
        text = _text(container)
        for template in templates:
            if template.marker not in text or template.phrase not in text:
                continue
            start = text.find(template.phrase, text.find(template.marker))
            if start < 0:
                continue
            message = _LINE_BREAK.split(text[start:], maxsplit=1)[0].strip()
            if len(message) > _MIN_TEMPLATE_TEXT:
                messages.append(
                    ScrapedMessage(
                        sender=template.sender,
                        message=message,
                        received_at=parse_timestamp(""),
                        raw_html=str(container),
                    )
                )
    return messages


def _from_text_patterns(
    soup: BeautifulSoup, html: str, templates: Sequence[KnownTemplate]
) -> List[ScrapedMessage]:
    """Strategy 4: regular expressions over the full page text."""
    messages: List[ScrapedMessage] = []
    text = (soup.body or soup).get_text() or html

    for template in templates:
        for literal in template.literals:
            if literal in text:
                messages.append(
                    ScrapedMessage(
                        sender=template.sender,
                        message=literal,
                        received_at=parse_timestamp(""),
                        raw_html="Direct text extraction",
                    )
                )
        for match in _template_pattern(template).finditer(text):
            message = match.group(1).strip()
            if len(message) > _MIN_TEMPLATE_TEXT:
                messages.append(
                    ScrapedMessage(
                        sender=template.sender,
                        message=message,
                        received_at=parse_timestamp(""),
                        raw_html=f"Flexible pattern match: {match.group(0)}",
                    )
                )

    for match in _FROM_MESSAGE.finditer(text):
        found = _candidate(
            match.group(1).strip(),
            match.group(2).strip(),
            "",
            f"Pattern match: {match.group(0)}",
        )
        if found is not None:
            messages.append(found)
    return messages


STRATEGIES: tuple[Strategy, ...] = (
    _from_labeled_rows,
    _from_generic_tables,
    _from_containers,
    _from_text_patterns,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_messages(
    html: str, templates: Optional[Sequence[KnownTemplate]] = None
) -> List[ScrapedMessage]:
    """Extract SMS messages from provider page *html*.

    Strategies run in priority order and the first non-empty result is
    returned.  An empty list means the page was readable but held no
    messages.

    Args:
        html: Full page HTML.
        templates: Known message templates for strategies 3 and 4.  Defaults
            to :func:`~smsdesk.scraper.templates.get_templates`.

    Raises:
        Exception: Whatever the HTML parser or template loading raises; the
            service layer turns it into a failed result.
    """
    if templates is None:
        templates = get_templates()
    soup = BeautifulSoup(html, "html.parser")
    for strategy in STRATEGIES:
        messages = strategy(soup, html, templates)
        if messages:
            logger.debug("%s matched %d message(s)", strategy.__name__, len(messages))
            return messages
    logger.debug("No extraction strategy matched")
    return []
