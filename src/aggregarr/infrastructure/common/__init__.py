"""Common infrastructure utilities."""

from __future__ import annotations

from .converters import to_count, to_int, to_int64
from .extractors import extract_imdb_id, extract_info_hash

__all__ = [
    "extract_imdb_id",
    "extract_info_hash",
    "to_count",
    "to_int",
    "to_int64",
]
