"""Type conversion utilities for heterogeneous JSON payloads."""

from __future__ import annotations

import math
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def to_int(raw: Any) -> int | None:
    """Convert a JSON number or numeric string to int, return None if invalid.

    Indexer APIs disagree on whether counts are numbers or strings, so every
    adapter runs its numeric fields through here.

    Handles:
        - None → None
        - int → int (passthrough)
        - 12.0 → 12 (floats are truncated)
        - "123" → 123
        - " 1,234 " → 1234
        - "12.7" → 12
        - "" / "abc" / True → None

    Args:
        raw: Decoded JSON value.

    Returns:
        Integer or None if conversion fails.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, int):
        return raw

    if isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        return int(raw)

    if isinstance(raw, str):
        txt = raw.strip().replace(",", "").replace("_", "").replace(" ", "")
        if not txt:
            return None
        try:
            return int(txt)
        except ValueError:
            pass
        try:
            value = float(txt)
        except ValueError:
            return None
        return int(value) if math.isfinite(value) else None

    return None


def to_int64(raw: Any) -> int | None:
    """Like :func:`to_int`, but None when the value does not fit in int64."""
    value = to_int(raw)
    if value is None or not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def to_count(raw: Any) -> int:
    """Non-negative counter (seeders/peers); invalid or negative → 0."""
    value = to_int(raw)
    return value if value is not None and value > 0 else 0
