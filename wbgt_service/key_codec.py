"""Map TimePoints to storage keys and feed header labels."""
from __future__ import annotations

import datetime as dt
import re

from wbgt_service.time_window import TimePoint

DEFAULT_KEY_PREFIX = "WBGT_"

_KEY_BODY_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})_(\d{2})$")


def _date_digits(point: TimePoint) -> str:
    return f"{point.date.year:04d}{point.date.month:02d}{point.date.day:02d}"


def encode_key(point: TimePoint, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Return the store key for a point, e.g. ``WBGT_20250709_15``."""
    return f"{prefix}{_date_digits(point)}_{point.hour:02d}"


def format_search_label(point: TimePoint) -> str:
    """Return the feed header label for a point, e.g. ``2025070915``."""
    return f"{_date_digits(point)}{point.hour:02d}"


def decode_key(key: str, prefix: str = DEFAULT_KEY_PREFIX) -> TimePoint:
    """Invert :func:`encode_key`. Raises ValueError for keys we did not produce."""
    if not key.startswith(prefix):
        raise ValueError(f"Key {key!r} does not start with prefix {prefix!r}")
    match = _KEY_BODY_RE.match(key[len(prefix):])
    if not match:
        raise ValueError(f"Key {key!r} is not a WBGT date/hour key")
    year, month, day, hour = (int(part) for part in match.groups())
    return TimePoint(date=dt.date(year, month, day), hour=hour)
