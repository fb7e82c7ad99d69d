"""
priceport - bulk import/export service for price records.

Accepts a zip archive holding one CSV file of price records, validates every
row, stores the batch in PostgreSQL inside a single transaction, and exports
the stored records back as a zip archive:

- Archive codec (zip members, CSV member lookup, deterministic packing)
- Record parser/renderer (strict four-column schema)
- Persistence gateway (psycopg pool, one transaction per ingest)
- Orchestrator and FastAPI serving layer
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from priceport.config import Settings, get_settings
from priceport.domain import (
    ArchiveFormatError,
    CsvFormatError,
    InputFramingError,
    MemberNotFoundError,
    PriceportError,
    PriceRecord,
    StorageError,
    UploadStats,
)
from priceport.orchestrator import ExportArchive, PriceStore, PriceTransfer
from priceport.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "PriceRecord",
    "UploadStats",
    # Errors
    "PriceportError",
    "InputFramingError",
    "ArchiveFormatError",
    "MemberNotFoundError",
    "CsvFormatError",
    "StorageError",
    # Orchestration
    "ExportArchive",
    "PriceStore",
    "PriceTransfer",
    # Logging
    "configure_logging",
    "get_logger",
]
