"""Null-safe coercion helpers for upstream payload fields."""
from __future__ import annotations

import math
from datetime import date, datetime
from io import BytesIO
from pathlib import Path

from bizdash.config import TIMESTAMP_FORMAT

_MISSING_MARKERS = {"", "NAN", "NONE", "NULL", "NAT"}


def ensure_bytes(source: BytesIO | Path | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, Path):
        return source.read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip().upper() in _MISSING_MARKERS


def parse_number(value: object) -> float | None:
    """Coerce a numeric field; ``None`` when absent or unparsable, never 0."""
    if _is_missing(value):
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    for ch in [",", "$", "€", "£", " "]:
        s = s.replace(ch, "")
    try:
        result = float(s)
    except ValueError:
        return None
    if math.isnan(result):
        return None
    return -result if negative else result


def parse_int(value: object) -> int | None:
    number = parse_number(value)
    if number is None:
        return None
    return int(number)


def parse_text(value: object) -> str | None:
    if _is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def format_timestamp(value: object) -> str | None:
    """Render date-like cells in the upstream ``YYYY-MM-DD HH:MM:SS`` text form."""
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).strftime(TIMESTAMP_FORMAT)
    return str(value).strip()
