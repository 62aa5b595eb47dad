"""
Domain time utilities (pure).

Sale timestamps are stored and compared in UTC. These helpers are shared by
the domain model, the filter boundary, the repository and the CSV loader so
that every path normalises timestamps the same way.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

# Postgres drops trailing zeros from fractional seconds (".12345"); older
# fromisoformat only takes 3 or 6 digits.
_FRACTION = re.compile(r"\.(\d+)")


def _six_digit_fraction(match: "re.Match[str]") -> str:
    return "." + (match.group(1) + "000000")[:6]


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforce that `value` is a timezone-aware UTC timestamp (offset 0).
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def parse_utc_timestamp(value: Any) -> datetime:
    """
    Parse a datetime or ISO-8601 string into a timezone-aware UTC datetime.

    Accepts a trailing 'Z', date-only strings ("2024-03-01") and naive values,
    which are interpreted as UTC. Aware values in another offset are converted.
    Fractional seconds of any length are padded or truncated to microseconds.

    Raises:
        ValueError: the string is not ISO-8601
        TypeError: the value is neither a string nor a datetime
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        text = _FRACTION.sub(_six_digit_fraction, text, count=1)
        dt = datetime.fromisoformat(text)
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_utc(dt: datetime) -> str:
    """Serialize a datetime to ISO-8601 in UTC."""

    return parse_utc_timestamp(dt).isoformat()
