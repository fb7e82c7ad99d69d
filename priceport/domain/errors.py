"""
Error taxonomy for the import/export pipeline.

Every error carries the HTTP status the serving layer answers with. Caller data
defects (framing, archive, CSV) are 400; storage failures are 500.
"""
from __future__ import annotations

from typing import Sequence


class PriceportError(Exception):
    """Base class for all pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputFramingError(PriceportError):
    """Wrong content type or empty body; raised before any decoding."""

    status_code = 400


class ArchiveFormatError(PriceportError):
    """The body is not a readable zip container."""

    status_code = 400


class MemberNotFoundError(PriceportError):
    """No CSV member in the archive."""

    status_code = 400

    def __init__(self, available_names: Sequence[str]) -> None:
        self.available_names = list(available_names)
        super().__init__(
            f"CSV file not found in zip. Files in archive: {self.available_names}"
        )


class CsvFormatError(PriceportError):
    """A malformed row; `line_number` is 1-based in the raw stream (0 when not row-bound)."""

    status_code = 400

    def __init__(self, line_number: int, detail: str) -> None:
        self.line_number = line_number
        self.detail = detail
        if line_number:
            message = f"invalid CSV at line {line_number}: {detail}"
        else:
            message = f"invalid CSV: {detail}"
        super().__init__(message)


class StorageError(PriceportError):
    """Transaction begin/prepare/exec/commit failure; the batch was rolled back."""

    status_code = 500


__all__ = [
    "PriceportError",
    "InputFramingError",
    "ArchiveFormatError",
    "MemberNotFoundError",
    "CsvFormatError",
    "StorageError",
]
