"""
Zip archive codec.

Decodes an uploaded zip into lazily opened members, picks the CSV member, and
builds the single-member archive returned by the export endpoint.
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from typing import IO, Dict, Mapping

from priceport.domain.errors import ArchiveFormatError, MemberNotFoundError
from priceport.utils.logging import get_logger

log = get_logger(__name__)

TABULAR_SUFFIX = ".csv"

# Fixed timestamp keeps `pack` output byte-identical for identical input.
_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class Member:
    """One named entry of an uploaded archive, opened on demand."""

    name: str
    size: int
    _info: zipfile.ZipInfo
    _archive: zipfile.ZipFile

    def open(self) -> IO[bytes]:
        """Open a decompressing binary stream over the member."""
        try:
            return self._archive.open(self._info, "r")
        except (zipfile.BadZipFile, RuntimeError, NotImplementedError) as exc:
            raise ArchiveFormatError(f"failed to open {self.name!r}: {exc}") from exc


def unpack(data: bytes) -> Dict[str, Member]:
    """
    Read the central directory of `data` and return members in listing order.

    Directory entries are skipped. A name listed twice keeps its first entry.
    Raises ArchiveFormatError if `data` is not a zip container.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
        raise ArchiveFormatError(f"failed to read zip: {exc}") from exc

    members: Dict[str, Member] = {}
    for info in archive.infolist():
        if info.is_dir():
            continue
        members.setdefault(
            info.filename,
            Member(name=info.filename, size=info.file_size, _info=info, _archive=archive),
        )
    log.debug("Archive unpacked", extra={"members": list(members)})
    return members


def find_tabular_member(members: Mapping[str, Member]) -> Member:
    """
    Return the first member whose name ends with `.csv`.

    Listing order decides between several candidates, so archives rebuilt by
    tools that reorder entries may resolve differently.
    """
    for name, member in members.items():
        if name.lower().endswith(TABULAR_SUFFIX):
            log.info("Found CSV member", extra={"member": name, "size": member.size})
            return member
    raise MemberNotFoundError(list(members))


def pack(name: str, data: bytes) -> bytes:
    """Build a deflated zip holding `data` under `name`."""
    buffer = io.BytesIO()
    info = zipfile.ZipInfo(filename=name, date_time=_FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(info, data)
    return buffer.getvalue()


__all__ = ["Member", "TABULAR_SUFFIX", "unpack", "find_tabular_member", "pack"]
