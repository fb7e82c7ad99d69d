"""
Domain package for the priceport service.

Exports the record/stats models and the pipeline error taxonomy.
Keep this package focused on data definitions and validation concerns.
"""

from priceport.domain.errors import (
    ArchiveFormatError,
    CsvFormatError,
    InputFramingError,
    MemberNotFoundError,
    PriceportError,
    StorageError,
)
from priceport.domain.models import PriceRecord, UploadStats

__all__ = [
    "PriceRecord",
    "UploadStats",
    "PriceportError",
    "InputFramingError",
    "ArchiveFormatError",
    "MemberNotFoundError",
    "CsvFormatError",
    "StorageError",
]
