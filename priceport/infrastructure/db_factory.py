"""
Database connection factory utilities for the priceport service.

Builds the PostgreSQL DSN from settings and opens the connection pool that the
web app owns for its whole lifetime. The pool is handed to the gateway
explicitly; nothing here keeps module-level connection state.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection, sql
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from priceport.config import Settings, get_settings
from priceport.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def apply_statement_timeout(conn: Connection, timeout_ms: int) -> None:
    """
    Set a session-level statement timeout (0 disables it).
    """
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms)))
        )


def _configure_connection(timeout_ms: int):
    def configure(conn: Connection) -> None:
        apply_statement_timeout(conn, timeout_ms)
        # Leave the connection idle; the pool rejects connections left in a transaction.
        conn.commit()

    return configure


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, PoolTimeout)),
    reraise=True,
)
def open_pool(
    settings: Optional[Settings] = None,
    dsn_override: Optional[str] = None,
    open_timeout: float = 10.0,
) -> ConnectionPool:
    """
    Open a synchronous connection pool and wait until `min_size` connections exist.

    Retries up to 3 times with exponential backoff so the service can start
    while the database container is still coming up.

    Parameters
    ----------
    settings : Settings | None
        Source of DSN, pool sizes and statement timeout. Defaults to get_settings().
    dsn_override : str | None
        Connect to this DSN instead of the one built from settings (tests).
    open_timeout : float
        Seconds to wait for the initial connections.

    Raises
    ------
    PoolTimeout
        If the pool cannot be filled after all retry attempts.
    """
    settings = settings or get_settings()
    pool = ConnectionPool(
        conninfo=dsn_override or build_dsn(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        configure=_configure_connection(settings.db_statement_timeout_ms),
        open=False,
        name="priceport",
    )
    try:
        pool.open(wait=True, timeout=open_timeout)
    except PoolTimeout:
        pool.close()
        log.warning("Database pool did not fill in time", extra={"host": settings.db_host})
        raise
    log.info(
        "Database pool opened",
        extra={
            "host": settings.db_host,
            "db": settings.db_name,
            "min_size": settings.db_pool_min_size,
            "max_size": settings.db_pool_max_size,
        },
    )
    return pool


__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "open_pool",
]
