"""Scraper package — receive-sms-online fetch & message extraction."""

from smsdesk.scraper.extractor import extract_messages
from smsdesk.scraper.fetcher import fetch_page
from smsdesk.scraper.filters import is_valid_message
from smsdesk.scraper.models import DebugInfo, FetchResult, ScrapedMessage, ScrapeResult
from smsdesk.scraper.service import health_check, scrape_messages
from smsdesk.scraper.timestamps import parse_timestamp
from smsdesk.scraper.validator import is_valid_url

__all__ = [
    "scrape_messages",
    "health_check",
    "fetch_page",
    "extract_messages",
    "is_valid_url",
    "is_valid_message",
    "parse_timestamp",
    "ScrapedMessage",
    "ScrapeResult",
    "DebugInfo",
    "FetchResult",
]
