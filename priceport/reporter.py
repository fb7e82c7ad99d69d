from __future__ import annotations

from typing import Iterable, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from priceport.codec.records import format_date, format_price
from priceport.domain.models import PriceRecord, UploadStats


def print_upload_stats(stats: UploadStats, source: str, console: Optional[Console] = None) -> None:
    """
    Render the result of one ingest as a rich table.
    """
    console = console or Console()
    table = Table(title=f"Imported {source}", box=box.ROUNDED, caption="Totals cover this upload only")
    table.add_column("Items", justify="right", style="magenta")
    table.add_column("Categories", justify="right", style="cyan")
    table.add_column("Total price", justify="right", style="bold green")
    table.add_row(
        f"{stats.total_items:,}",
        f"{stats.total_categories:,}",
        f"{stats.total_price:,.2f}",
    )
    console.print(table)


def print_records_preview(
    records: Iterable[PriceRecord], limit: int = 10, console: Optional[Console] = None
) -> int:
    """
    Print the first `limit` records and return how many were seen in total.
    """
    console = console or Console()
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Created", justify="right")

    seen = 0
    for record in records:
        seen += 1
        if seen <= limit:
            table.add_row(
                record.name,
                record.category,
                format_price(record.price),
                format_date(record.create_date),
            )

    if seen == 0:
        console.print("[yellow]No records stored.[/yellow]")
        return 0
    table.caption = f"Showing {min(seen, limit)} of {seen:,} records"
    console.print(table)
    return seen


__all__ = ["print_records_preview", "print_upload_stats"]
