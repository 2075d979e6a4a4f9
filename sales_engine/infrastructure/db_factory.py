"""
Database connection helpers for the PostgreSQL record source.

PostgreSQL is only a data source behind the record store: the engine reads the
``sales`` table once per (re)load and serves every query from memory. The
helpers here compose the DSN from settings, open connections with retry on
transient failures (tenacity) and apply a per-session statement timeout.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from sales_engine.config import Settings, get_settings


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Parameters
    ----------
    dsn : str | None
        Explicit DSN; defaults to one built from settings.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    """Set a session statement timeout; 0 leaves the server default in place."""
    if timeout_ms > 0:
        cursor.execute(f"SET statement_timeout = {int(timeout_ms)}")


__all__ = [
    "build_dsn",
    "get_sync_connection",
    "apply_statement_timeout",
]
