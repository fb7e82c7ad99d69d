"""
Domain models for the priceport service.

`PriceRecord` mirrors one row of the `prices` table (the surrogate `id` stays in
the database and is never exposed). `UploadStats` is the summary returned by an
ingest; its totals cover only the records accepted by that request.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, Field, field_validator


class PriceRecord(BaseModel):
    """
    One priced catalog entry.
    """

    name: str = Field(..., min_length=1, description="Display name of the product.")
    category: str = Field(..., min_length=1, description="Category label.")
    price: Decimal = Field(..., ge=0, description="Unit price, non-negative.")
    create_date: date = Field(..., description="Calendar date the entry was created.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @field_validator("price")
    @classmethod
    def _price_is_finite(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("price must be a finite number")
        return value


class UploadStats(BaseModel):
    """
    Aggregate summary of one ingest batch.

    Scope: batch-only. The totals describe the records inserted by the request
    that produced them, never the whole store, so concurrent uploads do not see
    each other's rows.
    """

    total_items: int = Field(0, ge=0)
    total_categories: int = Field(0, ge=0)
    total_price: float = Field(0.0, ge=0)

    @classmethod
    def from_records(cls, records: Iterable[PriceRecord]) -> "UploadStats":
        items = 0
        categories: set[str] = set()
        total = Decimal("0")
        for record in records:
            items += 1
            categories.add(record.category)
            total += record.price
        return cls(
            total_items=items,
            total_categories=len(categories),
            total_price=float(total),
        )


__all__ = ["PriceRecord", "UploadStats"]
