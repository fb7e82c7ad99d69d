"""
Import/export orchestrator.

Wires the archive codec, the CSV parser and the persistence gateway together:

    ingest:  zip bytes -> CSV member -> validated records -> one transaction -> stats
    export:  stored records (insertion order) -> CSV text -> single-member zip

Usage:
    from priceport.orchestrator import PriceTransfer

    transfer = PriceTransfer(PriceGateway(pool))
    stats = transfer.handle_ingest("application/zip", body)
    archive = transfer.handle_export()
"""

from __future__ import annotations

import zipfile
import zlib
from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, Sequence, runtime_checkable

from priceport.codec.archive import find_tabular_member, pack, unpack
from priceport.codec.records import parse_all, render_all
from priceport.domain.errors import ArchiveFormatError, InputFramingError
from priceport.domain.models import PriceRecord, UploadStats
from priceport.utils.logging import get_logger
from priceport.utils.profiler import profile_block

log = get_logger(__name__)

ARCHIVE_MEDIA_TYPE = "application/zip"
EXPORT_MEMBER_NAME = "data.csv"
EXPORT_FILENAME = "prices.zip"


@runtime_checkable
class PriceStore(Protocol):
    """
    What the orchestrator needs from persistence. PriceGateway implements it.
    """

    def insert_batch(self, records: Sequence[PriceRecord]) -> UploadStats:
        ...

    def iter_all(self, batch_size: Optional[int] = None) -> Iterator[PriceRecord]:
        ...


@dataclass(frozen=True)
class ExportArchive:
    """A rendered export, ready to be sent with an exact Content-Length."""

    content: bytes
    filename: str = EXPORT_FILENAME
    media_type: str = ARCHIVE_MEDIA_TYPE

    @property
    def size(self) -> int:
        return len(self.content)


def _media_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


class PriceTransfer:
    """
    Runs ingests and exports against an injected PriceStore.
    """

    def __init__(self, store: PriceStore, member_name: str = EXPORT_MEMBER_NAME) -> None:
        self._store = store
        self.member_name = member_name

    def decode_upload(self, content_type: Optional[str], body: bytes) -> List[PriceRecord]:
        """
        Check framing, unpack the archive and validate every CSV row.

        Touches no storage: any defect in the upload surfaces here, before the
        transaction is opened.
        """
        if _media_type(content_type) != ARCHIVE_MEDIA_TYPE:
            raise InputFramingError(f"Expected zip file, got: {content_type or ''!r}")
        if not body:
            raise InputFramingError("Empty request body")

        member = find_tabular_member(unpack(body))
        try:
            with member.open() as stream:
                return parse_all(stream)
        except (zipfile.BadZipFile, EOFError, zlib.error) as exc:
            raise ArchiveFormatError(f"failed to read {member.name!r}: {exc}") from exc

    def handle_ingest(self, content_type: Optional[str], body: bytes) -> UploadStats:
        """Validate the upload, then persist it in one transaction."""
        with profile_block("ingest") as prof:
            records = self.decode_upload(content_type, body)
            stats = self._store.insert_batch(records)
        prof.extra.update(stats.model_dump())
        prof.extra["body_bytes"] = len(body)
        log.info("Ingest completed", extra=prof.as_log_extra())
        return stats

    def handle_export(self) -> ExportArchive:
        """Render all stored records, oldest first, into a fresh archive."""
        with profile_block("export") as prof:
            content = pack(self.member_name, render_all(self._store.iter_all()))
        prof.extra["archive_bytes"] = len(content)
        log.info("Export completed", extra=prof.as_log_extra())
        return ExportArchive(content=content)


__all__ = [
    "ARCHIVE_MEDIA_TYPE",
    "EXPORT_FILENAME",
    "EXPORT_MEMBER_NAME",
    "ExportArchive",
    "PriceStore",
    "PriceTransfer",
]
