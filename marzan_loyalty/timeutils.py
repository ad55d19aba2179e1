from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from marzan_loyalty.config import APP_TIMEZONE


def utcnow() -> datetime:
    # Naive UTC timestamps, matching the TIMESTAMP column semantics.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(ZoneInfo("UTC"))


def to_utc_naive(dt: datetime) -> datetime:
    return as_utc_aware(dt).replace(tzinfo=None)


def local_today(now: datetime | None = None) -> date:
    """Calendar date in the shop's timezone."""
    now = now or utcnow()
    return as_utc_aware(now).astimezone(ZoneInfo(APP_TIMEZONE)).date()


def add_months(dt: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's end."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
