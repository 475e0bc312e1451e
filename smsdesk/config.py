"""Centralised settings for the smsdesk backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional_path(name: str) -> Optional[Path]:
    value = os.environ.get(name, "").strip()
    return Path(value) if value else None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("SMSDESK_WORKSPACE", Path.home() / ".smsdesk_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "smsdesk.db"

    # ------------------------------------------------------------------
    # Provider page shape (receive-sms-online private inbox)
    # ------------------------------------------------------------------
    provider_host: str = field(
        default_factory=lambda: os.environ.get("PROVIDER_HOST", "receive-sms-online.info")
    )
    provider_path_segment: str = field(
        default_factory=lambda: os.environ.get("PROVIDER_PATH_SEGMENT", "private.php")
    )

    # ------------------------------------------------------------------
    # Scraper
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "15.0"))
    )
    templates_file: Optional[Path] = field(
        default_factory=lambda: _optional_path("SMSDESK_TEMPLATES_FILE")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton; import this everywhere:
#   from smsdesk.config import settings
settings = Settings()
