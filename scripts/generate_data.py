"""
Sample archive generator for the priceport service.

Implements deterministic pseudo-random price rows, CSV emission and zip packing
so the result can be uploaded straight to POST /api/v0/prices.
"""

from __future__ import annotations

import csv
import io
import random
import sys
import time
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import typer

from priceport.codec.archive import pack
from priceport.codec.records import CSV_HEADER, DATE_FORMAT

app = typer.Typer(help="Generate a sample zip archive of price records.")

CATEGORIES = ["tools", "garden", "kitchen", "electronics", "toys"]
PRODUCTS = ["hammer", "rake", "kettle", "cable", "puzzle", "lamp", "drill", "mug"]


def _generate_rows_csv(
    rows: int,
    seed: int,
    header: bool = True,
    invalid_line: Optional[int] = None,
) -> bytes:
    """
    Build CSV bytes with `rows` data rows.

    `invalid_line` (1-based, counted like the parser counts raw lines) replaces
    that row's price with a non-numeric value.
    """
    rng = random.Random(seed)
    start = date(2024, 1, 1)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    line = 0
    if header:
        writer.writerow(CSV_HEADER)
        line += 1

    for i in range(rows):
        line += 1
        price = f"{rng.uniform(0.5, 500):.2f}"
        if invalid_line is not None and line == invalid_line:
            price = "n/a"
        writer.writerow(
            [
                f"{rng.choice(PRODUCTS)}-{i:05d}",
                rng.choice(CATEGORIES),
                price,
                (start + timedelta(days=rng.randint(0, 365))).strftime(DATE_FORMAT),
            ]
        )
    return buffer.getvalue().encode("utf-8")


def _write_archive(path: Path, csv_bytes: bytes, member_name: str = "data.csv") -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    content = pack(member_name, csv_bytes)
    path.write_bytes(content)
    return len(content)


@app.command()
def main(
    rows: int = typer.Option(
        1_000,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("sample_prices.zip"),
        "--output",
        "-o",
        help="Zip archive output path.",
    ),
    no_header: bool = typer.Option(
        False,
        "--no-header",
        help="Omit the header line.",
    ),
    invalid_line: Optional[int] = typer.Option(
        None,
        "--invalid-line",
        help="Corrupt the price on this 1-based line (to exercise rejection).",
    ),
) -> None:
    """
    Generate a sample archive of price records.
    """
    start = time.perf_counter()
    typer.echo(f"Generating {rows:,} rows -> {output} (seed={seed})")
    csv_bytes = _generate_rows_csv(rows, seed=seed, header=not no_header, invalid_line=invalid_line)
    size = _write_archive(output, csv_bytes)
    duration = time.perf_counter() - start
    typer.echo(
        f"Wrote {size:,} bytes ({len(csv_bytes):,} bytes of CSV) in {duration:.2f}s."
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
