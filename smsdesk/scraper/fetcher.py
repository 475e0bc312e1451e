"""HTTP fetcher that presents itself as an ordinary desktop browser."""

from __future__ import annotations

import logging
import random
import time

import httpx

from smsdesk.config import settings
from smsdesk.scraper.models import FetchResult

logger = logging.getLogger(__name__)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
)

_BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate, br",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def build_headers() -> dict[str, str]:
    """Return the browser header set with a randomly picked ``User-Agent``."""
    headers = dict(_BROWSER_HEADERS)
    headers["User-Agent"] = random.choice(USER_AGENTS)
    return headers


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def fetch_page(url: str) -> FetchResult:
    """Fetch *url* once and return a :class:`FetchResult`.

    Timeouts, transport errors and non-2xx responses are reported through
    ``FetchResult.error``; nothing is raised.  No retries are attempted.
    """
    start = time.perf_counter()
    try:
        with httpx.Client(
            headers=build_headers(),
            timeout=settings.request_timeout,
            follow_redirects=True,
        ) as client:
            response = client.get(url)
            body = response.text
    except httpx.TimeoutException:
        elapsed = _elapsed_ms(start)
        logger.warning("Timed out fetching %s after %d ms", url, elapsed)
        return FetchResult(
            url=url,
            elapsed_ms=elapsed,
            error=f"Request timed out after {settings.request_timeout:g}s",
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        elapsed = _elapsed_ms(start)
        logger.warning("Failed to fetch %s: %s", url, exc)
        return FetchResult(url=url, elapsed_ms=elapsed, error=str(exc) or type(exc).__name__)

    elapsed = _elapsed_ms(start)
    result = FetchResult(
        url=url,
        status_code=response.status_code,
        body_text=body,
        elapsed_ms=elapsed,
    )
    if not response.is_success:
        result.body_text = ""
        result.error = f"HTTP {response.status_code}: {response.reason_phrase}"
        logger.warning("Fetch of %s returned %s", url, result.error)
    else:
        logger.debug("Fetched %s (%d chars) in %d ms", url, len(body), elapsed)
    return result
