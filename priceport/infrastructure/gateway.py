"""
Persistence gateway for price records.

Owns the transaction boundary of an ingest: the whole batch is inserted with one
prepared statement inside a single transaction, statistics are computed inside
that same block, and any failure rolls everything back.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

import psycopg
from psycopg_pool import ConnectionPool

from priceport.domain.errors import StorageError
from priceport.domain.models import PriceRecord, UploadStats
from priceport.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS public.prices (
    id          BIGSERIAL PRIMARY KEY,
    name        TEXT    NOT NULL,
    category    TEXT    NOT NULL,
    price       NUMERIC NOT NULL CHECK (price >= 0),
    create_date DATE    NOT NULL
);
"""

INSERT_SQL = (
    "INSERT INTO public.prices (name, category, price, create_date) "
    "VALUES (%s, %s, %s, %s)"
)
SELECT_ALL_SQL = "SELECT name, category, price, create_date FROM public.prices ORDER BY id"
COUNT_SQL = "SELECT COUNT(*) FROM public.prices"


def _batched_fetch(cursor: psycopg.Cursor, batch_size: int) -> Iterator[list]:
    """
    Yield batches from a cursor using fetchmany.
    """
    while True:
        batch = cursor.fetchmany(batch_size)
        if not batch:
            break
        yield batch


class PriceGateway:
    """
    Reads and writes the `prices` table through an injected connection pool.
    """

    def __init__(self, pool: ConnectionPool, export_batch_size: int = 5_000) -> None:
        self._pool = pool
        self.export_batch_size = export_batch_size

    def ensure_schema(self) -> None:
        """Create the prices table if it does not exist."""
        try:
            with self._pool.connection() as conn:
                with conn.transaction():
                    conn.execute(SCHEMA_SQL)
        except psycopg.Error as exc:
            raise StorageError(f"failed to create schema: {exc}") from exc
        log.info("Schema ready", extra={"table": "prices"})

    def insert_batch(self, records: Sequence[PriceRecord]) -> UploadStats:
        """
        Insert `records` atomically and return batch-scoped statistics.

        Raises
        ------
        StorageError
            On any begin/prepare/exec/commit failure. No row of the batch is
            left behind.
        """
        params = [
            (record.name, record.category, record.price, record.create_date)
            for record in records
        ]
        try:
            with self._pool.connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.executemany(INSERT_SQL, params)
                    stats = UploadStats.from_records(records)
        except (psycopg.Error, ValueError) as exc:
            log.error(
                "Batch insert rolled back",
                extra={"rows": len(params), "error": str(exc)},
            )
            raise StorageError(f"failed to insert records: {exc}") from exc

        log.info(
            "Batch committed",
            extra={"rows": stats.total_items, "categories": stats.total_categories},
        )
        return stats

    def iter_all(self, batch_size: Optional[int] = None) -> Iterator[PriceRecord]:
        """
        Stream every stored record in insertion order.

        Uses a server-side cursor so rows are decoded batch by batch instead of
        being materialised by the driver up front.
        """
        size = batch_size or self.export_batch_size
        try:
            with self._pool.connection() as conn:
                with conn.transaction():
                    with conn.cursor(name="prices_export") as cur:
                        cur.execute(SELECT_ALL_SQL)
                        for batch in _batched_fetch(cur, size):
                            for name, category, price, create_date in batch:
                                yield PriceRecord(
                                    name=name,
                                    category=category,
                                    price=price,
                                    create_date=create_date,
                                )
        except psycopg.Error as exc:
            raise StorageError(f"failed to read records: {exc}") from exc

    def fetch_all(self) -> List[PriceRecord]:
        return list(self.iter_all())

    def count(self) -> int:
        try:
            with self._pool.connection() as conn:
                row = conn.execute(COUNT_SQL).fetchone()
        except psycopg.Error as exc:
            raise StorageError(f"failed to count records: {exc}") from exc
        return int(row[0]) if row else 0

    def ping(self) -> bool:
        """Run `SELECT 1`; False when the database cannot be reached."""
        try:
            with self._pool.connection() as conn:
                conn.execute("SELECT 1")
        except psycopg.Error as exc:
            log.warning("Database ping failed", extra={"error": str(exc)})
            return False
        return True


__all__ = ["PriceGateway", "SCHEMA_SQL"]
