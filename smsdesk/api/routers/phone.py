"""Receive-SMS endpoints — preview scrape and scraper health.

Routes
------
POST /phone/receive-sms/preview   Body: {"url": "...", "phone_number_id": "..."}
GET  /phone/receive-sms/health
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from smsdesk.db.messages import save_messages
from smsdesk.scraper.models import ScrapeResult
from smsdesk.scraper.service import health_check, scrape_messages

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class PreviewRequest(BaseModel):
    url: Optional[str] = None
    phone_number_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _persist(conn: sqlite3.Connection, phone_number_id: str, result: ScrapeResult) -> None:
    """Store scraped messages; failures are logged and never surface."""
    try:
        inserted = save_messages(conn, phone_number_id, result.messages)
    except Exception:
        logger.exception("Failed to save scraped messages for %s", phone_number_id)
        return
    logger.info(
        "Saved %d new message(s) of %d for %s",
        inserted,
        len(result.messages),
        phone_number_id,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/receive-sms/preview", response_model=None)
def preview_receive_sms(body: PreviewRequest, request: Request) -> Any:
    """Scrape a private receive-sms-online inbox and return what was found.

    Scrape failures still answer 200 with ``success: false`` in the body.
    When ``phone_number_id`` is given, found messages are saved as a side
    effect.
    """
    if not body.url or not body.url.strip():
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "URL is required"},
        )

    result = scrape_messages(body.url.strip())

    if result.success and result.messages and body.phone_number_id:
        _persist(request.app.state.db, body.phone_number_id, result)

    return result.to_dict()


@router.get("/receive-sms/health")
def receive_sms_health() -> dict[str, Any]:
    """Report that the scraper is up.  No network access is performed."""
    return health_check()
