"""
CSV record parser and renderer.

Column layout (one schema, no identifier column):

    name,category,price,create_date

`iter_records` is a single-pass generator over a binary stream; `parse_all`
drains it eagerly so that a bad row late in the file is found before any
database work starts. `render_all` is the inverse used by the export.
"""

from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import IO, Iterable, Iterator, List, Optional, Sequence

from priceport.domain.errors import CsvFormatError
from priceport.domain.models import PriceRecord
from priceport.utils.logging import get_logger

log = get_logger(__name__)

CSV_HEADER = ("name", "category", "price", "create_date")
EXPECTED_COLUMNS = len(CSV_HEADER)
DATE_FORMAT = "%Y-%m-%d"
_PRICE_COLUMN = 2
_CENTS = Decimal("0.01")
# Plain ASCII decimal notation with an optional exponent. No underscores, no NaN/Infinity.
_PRICE_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
# Most digits PostgreSQL NUMERIC keeps after the decimal point.
_MAX_SCALE = 16383


def _parse_price(raw: str) -> Optional[Decimal]:
    """Decode a price cell; surrounding whitespace is tolerated."""
    text = raw.strip()
    if not _PRICE_RE.fullmatch(text):
        return None
    value = Decimal(text)
    # "-0" is a valid price; drop the sign so it renders as 0.00.
    return value.copy_abs() if value.is_zero() else value


def _is_renderable(price: Decimal) -> bool:
    """True when the export can print `price` with two decimals and the store can hold it."""
    if price.as_tuple().exponent < -_MAX_SCALE:
        return False
    try:
        price.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return False
    return True


def _looks_like_header(row: Sequence[str]) -> bool:
    """
    Content heuristic for the optional header line.

    The first column must read `name` or contain `id`, and the price column
    must not hold a number. The second condition keeps rows such as
    `Widget,Tools,9.99,...` from being dropped.
    """
    first = row[0].strip().lower()
    if first != "name" and "id" not in first:
        return False
    if len(row) > _PRICE_COLUMN:
        return _parse_price(row[_PRICE_COLUMN]) is None
    return True


def parse_row(row: Sequence[str], line_number: int) -> PriceRecord:
    """Validate one positional row and build a PriceRecord."""
    if len(row) != EXPECTED_COLUMNS:
        raise CsvFormatError(
            line_number, f"expected {EXPECTED_COLUMNS} fields, got {len(row)}"
        )
    name, category, raw_price, raw_date = row

    if not name.strip():
        raise CsvFormatError(line_number, "empty name")
    if not category.strip():
        raise CsvFormatError(line_number, "empty category")

    price = _parse_price(raw_price)
    if price is None:
        raise CsvFormatError(line_number, f"invalid price format: {raw_price!r}")
    if price < 0:
        raise CsvFormatError(line_number, f"negative price: {raw_price!r}")
    if not _is_renderable(price):
        raise CsvFormatError(line_number, f"price out of range: {raw_price!r}")

    try:
        created = datetime.strptime(raw_date.strip(), DATE_FORMAT).date()
    except ValueError:
        raise CsvFormatError(line_number, f"invalid date format: {raw_date!r}") from None

    return PriceRecord(name=name, category=category, price=price, create_date=created)


def iter_records(stream: IO[bytes]) -> Iterator[PriceRecord]:
    """
    Lazily decode validated records from a UTF-8 CSV byte stream.

    Empty lines are skipped. A line holding only separators or spaces is a row
    like any other and fails the column checks. Line numbers reported in errors
    are 1-based positions in the raw stream, empty lines included.
    """
    text = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
    reader = csv.reader(text)
    header_checked = False
    try:
        for row in reader:
            if not row:
                continue
            if not header_checked:
                header_checked = True
                if _looks_like_header(row):
                    log.debug("Skipping header row", extra={"header": row})
                    continue
            yield parse_row(row, reader.line_num)
    except csv.Error as exc:
        raise CsvFormatError(reader.line_num, str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise CsvFormatError(reader.line_num + 1, f"not valid UTF-8: {exc}") from exc


def parse_all(stream: IO[bytes]) -> List[PriceRecord]:
    """Validate the whole stream up front; fails on the first malformed row."""
    records = list(iter_records(stream))
    if not records:
        raise CsvFormatError(0, "no records found in CSV")
    return records


def format_price(price: Decimal) -> str:
    return str(price.quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def render_all(records: Iterable[PriceRecord]) -> bytes:
    """Serialize records to CSV bytes, header first, in the given order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow(
            [
                record.name,
                record.category,
                format_price(record.price),
                format_date(record.create_date),
            ]
        )
    return buffer.getvalue().encode("utf-8")


__all__ = [
    "CSV_HEADER",
    "DATE_FORMAT",
    "EXPECTED_COLUMNS",
    "format_date",
    "format_price",
    "iter_records",
    "parse_all",
    "parse_row",
    "render_all",
]
