"""
Date/time parsing and normalisation utilities, framework-agnostic.

pymongo hands back naive datetimes (BSON dates carry no zone) unless the
client is tz-aware, so everything read from the store goes through
``ensure_utc`` before it is compared with ``utcnow()``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return *value* as an aware UTC datetime; naive values are assumed UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Coerce an API or stored date value to an aware UTC datetime.

    Datetimes are normalised, numbers are epoch seconds, strings are ISO 8601
    (a trailing "Z" is accepted). Unparseable input gives None so request
    validators can report it as a field error.
    """
    if value is None:
        return None
    try:
        if isinstance(value, datetime):
            return ensure_utc(value)
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        raw = str(value)
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(raw))
    except (ValueError, OSError, OverflowError):
        return None


def to_timestamp(value: Optional[datetime]) -> Optional[int]:
    """Unix seconds for API responses, ``None`` passes through."""
    if value is None:
        return None
    return int(ensure_utc(value).timestamp())
