"""smsdesk CLI — entry-point for scraper and storage operations.

Usage:
    python cli/main.py --help

Command groups:
    scrape    → scrape a receive-sms-online inbox
    health    → scraper liveness payload
    messages  → list stored messages for a phone number
    db        → database operations
    serve     → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from smsdesk.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
import logging
from typing import Optional

import typer

from smsdesk.config import settings
from smsdesk.db import get_connection, init_db, list_messages, save_messages

app = typer.Typer(
    name="smsdesk",
    help="smsdesk receive-sms scraper CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging for every sub-command."""
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Scrape commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="Private receive-sms-online inbox URL."),
    phone_number_id: Optional[str] = typer.Option(
        None, "--phone-number-id", help="Save found messages under this phone number."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result envelope."),
) -> None:
    """Scrape an inbox URL and print the messages found."""
    from smsdesk.scraper import scrape_messages

    result = scrape_messages(url)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif not result.success:
        typer.echo(f"[scrape] Failed: {result.error}")
    else:
        debug = result.debug_info
        typer.echo(
            f"[scrape] HTTP {debug.http_status}, {len(result.messages)} message(s) "
            f"in {debug.response_time_ms} ms"
        )
        for m in result.messages:
            typer.echo(f"  {m.received_at}  {m.sender!r}: {m.message}")

    if not result.success:
        raise typer.Exit(1)

    if phone_number_id and result.messages:
        conn = get_connection()
        init_db(conn)
        try:
            inserted = save_messages(conn, phone_number_id, result.messages)
        finally:
            conn.close()
        if not as_json:
            typer.echo(f"[scrape] Saved {inserted} new message(s) for {phone_number_id!r}")


@app.command("health")
def health() -> None:
    """Print the scraper health payload."""
    from smsdesk.scraper import health_check

    typer.echo(json.dumps(health_check(), indent=2))


# ---------------------------------------------------------------------------
# Stored messages
# ---------------------------------------------------------------------------
@app.command("messages")
def messages(
    phone_number_id: str = typer.Option(..., "--phone-number-id", help="Phone number id."),
) -> None:
    """List stored messages for a phone number, newest first."""
    conn = get_connection()
    init_db(conn)
    try:
        rows = list_messages(conn, phone_number_id)
    finally:
        conn.close()
    if not rows:
        typer.echo(f"[messages] No messages stored for {phone_number_id!r}.")
        return
    for m in rows:
        typer.echo(f"  {m.received_at}  [{m.message_source}]  {m.sender!r}: {m.message}")


# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Run the FastAPI app with uvicorn."""
    import uvicorn

    uvicorn.run("smsdesk.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
