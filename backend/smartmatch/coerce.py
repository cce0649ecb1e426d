"""
Lenient field readers for marketplace documents.

Records arrive either as ORM rows or as plain JSON documents written by
older clients, so any field may be missing, null, or the wrong type.
Every reader returns a safe default instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any


def field(record: Any, name: str, default: Any = None) -> Any:
    """Read `name` from a mapping or an attribute-bearing object."""
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def as_int(value: Any, default: int = 0) -> int:
    number = as_float(value, float("nan"))
    if math.isnan(number):
        return default
    return int(number)


def as_bool(value: Any) -> bool:
    return value is True


def as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def as_mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def to_ms(value: Any) -> int:
    """Epoch milliseconds from a number, datetime, or ISO-8601 string; 0 when unknown."""
    if not value:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, Mapping) and isinstance(value.get("seconds"), (int, float)):
        return int(value["seconds"] * 1000)
    try:
        return to_ms(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return 0


def round_half_up(value: float) -> int:
    """Round .5 upward, matching the rounding used in stored profiles."""
    return math.floor(value + 0.5)
