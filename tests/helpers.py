"""Shared test doubles and archive builders."""

from __future__ import annotations

import io
import zipfile
from typing import Dict, Iterator, List, Optional, Sequence

from priceport.domain.errors import StorageError
from priceport.domain.models import PriceRecord, UploadStats

SAMPLE_CSV = b"name,category,price,create_date\nWidget,Tools,9.99,2024-01-15\n"


def build_zip(members: Dict[str, bytes]) -> bytes:
    """Zip `members` in insertion order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


class InMemoryPriceStore:
    """
    PriceStore double with all-or-nothing inserts.
    """

    def __init__(self) -> None:
        self.rows: List[PriceRecord] = []
        self.insert_calls = 0
        self.fail_inserts = False
        self.healthy = True

    def insert_batch(self, records: Sequence[PriceRecord]) -> UploadStats:
        self.insert_calls += 1
        if self.fail_inserts:
            raise StorageError("failed to insert records: simulated outage")
        self.rows.extend(records)
        return UploadStats.from_records(records)

    def iter_all(self, batch_size: Optional[int] = None) -> Iterator[PriceRecord]:
        del batch_size
        yield from list(self.rows)

    def count(self) -> int:
        return len(self.rows)

    def ping(self) -> bool:
        return self.healthy
