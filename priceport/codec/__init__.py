"""
Codec package for the priceport service.

Archive (zip) and record (CSV) encoding/decoding. Pure functions over bytes and
streams; no database or HTTP concerns.
"""

from priceport.codec.archive import Member, find_tabular_member, pack, unpack
from priceport.codec.records import CSV_HEADER, iter_records, parse_all, render_all

__all__ = [
    "CSV_HEADER",
    "Member",
    "find_tabular_member",
    "iter_records",
    "pack",
    "parse_all",
    "render_all",
    "unpack",
]
