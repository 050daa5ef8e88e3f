"""Derive the (date, hour) points the WBGT cache tracks."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List, Optional

# The feed and its consumers work in JST regardless of where we are deployed.
JST_OFFSET = dt.timedelta(hours=9)
TARGET_HOURS = (15, 18)


@dataclass(frozen=True)
class TimePoint:
    """A calendar day in JST paired with an hour of interest."""
    date: dt.date
    hour: int


def _as_utc(now: Optional[dt.datetime]) -> dt.datetime:
    """Normalize an instant to aware UTC; naive values are taken as UTC."""
    if now is None:
        return dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=dt.timezone.utc)
    return now.astimezone(dt.timezone.utc)


def jst_today(now_utc: Optional[dt.datetime] = None) -> dt.date:
    """Return the current calendar day in JST."""
    return (_as_utc(now_utc) + JST_OFFSET).date()


def compute_target_points(now_utc: Optional[dt.datetime] = None) -> List[TimePoint]:
    """
    Return today 15h, today 18h, tomorrow 15h, tomorrow 18h (JST), in that order.

    The offset is applied explicitly so the host time zone never leaks in.
    """
    today = jst_today(now_utc)
    tomorrow = (dt.datetime.combine(today, dt.time()) + dt.timedelta(hours=24)).date()
    return [TimePoint(date=day, hour=hour) for day in (today, tomorrow) for hour in TARGET_HOURS]
