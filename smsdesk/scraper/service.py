"""Top-level scrape operation: validate, fetch, extract, wrap in a result.

``scrape_messages`` never raises.  Every failure mode ends up in the
:class:`ScrapeResult` envelope so request handlers can return it as-is.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Sequence

from smsdesk.scraper.extractor import extract_messages
from smsdesk.scraper.fetcher import fetch_page
from smsdesk.scraper.models import DebugInfo, ScrapeResult, utc_now_iso
from smsdesk.scraper.templates import KnownTemplate
from smsdesk.scraper.validator import is_valid_url

logger = logging.getLogger(__name__)

FETCH_METHOD = "backend-direct"
INVALID_URL_ERROR = "Invalid receive-sms-online.info URL"


def _parse(
    html: str,
    start: float,
    debug_info: DebugInfo,
    templates: Optional[Sequence[KnownTemplate]],
) -> ScrapeResult:
    try:
        messages = extract_messages(html, templates=templates)
    except Exception as exc:
        logger.exception("Failed to parse provider page")
        return ScrapeResult.failure(str(exc) or "Failed to parse HTML", debug_info)

    debug_info.response_time_ms = int((time.perf_counter() - start) * 1000)
    return ScrapeResult(success=True, messages=messages, debug_info=debug_info)


def scrape_messages(
    url: str, templates: Optional[Sequence[KnownTemplate]] = None
) -> ScrapeResult:
    """Scrape the SMS inbox at *url*.

    Args:
        url: Private inbox URL (``https://receive-sms-online.info/private.php?phone=…&key=…``).
        templates: Override the known message templates used by the
            free-text strategies.

    Returns:
        A :class:`ScrapeResult`.  ``success`` is False for an invalid URL, a
        failed fetch or a parse error; an empty ``messages`` list with
        ``success`` True means the page had nothing to extract.
    """
    start = time.perf_counter()
    debug_info = DebugInfo()
    try:
        if not is_valid_url(url):
            debug_info.service_accessible = False
            logger.info("Rejected scrape of invalid URL %r", url)
            return ScrapeResult.failure(INVALID_URL_ERROR, debug_info)

        fetched = fetch_page(url)
        debug_info.fetch_method = FETCH_METHOD
        debug_info.http_status = fetched.status_code
        debug_info.response_time_ms = fetched.elapsed_ms
        if not fetched.success:
            debug_info.service_accessible = False
            return ScrapeResult.failure(fetched.error or "Unknown scraping error", debug_info)

        debug_info.service_accessible = True
        debug_info.content_length = len(fetched.body_text)
        result = _parse(fetched.body_text, start, debug_info, templates)
    except Exception as exc:
        logger.exception("Unexpected error while scraping %s", url)
        debug_info.service_accessible = False
        return ScrapeResult.failure(str(exc), debug_info)

    if result.success:
        logger.info("Scraped %d message(s) from %s", len(result.messages), url)
    return result


def health_check() -> dict[str, Any]:
    """Liveness payload for monitoring; performs no network access."""
    return {
        "success": True,
        "message": "Receive-SMS-Online scraper is healthy",
        "timestamp": utc_now_iso(),
    }
