"""Data models for the receive-sms scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional


def to_iso(dt: datetime) -> str:
    """Format *dt* as a UTC ISO-8601 instant with millisecond precision.

    Naive datetimes are taken to be UTC already.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


@dataclass(frozen=True)
class ScrapedMessage:
    """One SMS recovered from a provider page."""

    sender: str
    message: str
    received_at: str
    raw_html: str

    def to_dict(self) -> dict[str, str]:
        return {
            "sender": self.sender,
            "message": self.message,
            "received_at": self.received_at,
            "raw_html": self.raw_html,
        }


@dataclass
class FetchResult:
    """Outcome of a single HTTP GET against the provider page."""

    url: str
    status_code: Optional[int] = None
    body_text: str = ""
    elapsed_ms: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """True when no error occurred and the status code is 2xx."""
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
        )


@dataclass
class DebugInfo:
    """Diagnostics attached to every :class:`ScrapeResult`.

    Nothing in here drives control flow.
    """

    http_status: Optional[int] = None
    response_time_ms: Optional[int] = None
    content_length: Optional[int] = None
    service_accessible: Optional[bool] = None
    fetch_method: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "httpStatus": self.http_status,
            "responseTimeMs": self.response_time_ms,
            "contentLength": self.content_length,
            "serviceAccessible": self.service_accessible,
            "fetchMethod": self.fetch_method,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass
class ScrapeResult:
    """Uniform envelope returned by :func:`~smsdesk.scraper.service.scrape_messages`."""

    success: bool
    messages: List[ScrapedMessage] = field(default_factory=list)
    error: Optional[str] = None
    last_scraped_at: str = field(default_factory=utc_now_iso)
    debug_info: DebugInfo = field(default_factory=DebugInfo)

    @classmethod
    def failure(cls, error: str, debug_info: DebugInfo) -> ScrapeResult:
        return cls(success=False, messages=[], error=error or "Unknown scraping error", debug_info=debug_info)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON wire form (camelCase envelope keys)."""
        payload: dict[str, Any] = {
            "success": self.success,
            "messages": [m.to_dict() for m in self.messages],
            "lastScrapedAt": self.last_scraped_at,
            "debugInfo": self.debug_info.to_dict(),
        }
        if not self.success:
            payload["error"] = self.error
        return payload
