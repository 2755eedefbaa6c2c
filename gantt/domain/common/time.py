from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional


def parse_date(value: object) -> Optional[date]:
    """
    Calendar date from a record field.

    Accepts None, "", a date, a datetime, "YYYY-MM-DD" or an ISO datetime
    string (the time part is dropped). Raises ValueError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        # "2024-01-03T00:00:00.000Z" and "2024-01-03 10:00" both start with the date
        return date.fromisoformat(raw[:10])
    raise ValueError(f"not a date: {value!r}")


def to_iso_date(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def add_months(d: date, months: int) -> date:
    # clamp the day for short months (Jan 31 + 1 month -> Feb 28/29)
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, d: date) -> int:
    """Whole calendar months from start's month to d's month (may be negative)."""
    return (d.year - start.year) * 12 + (d.month - start.month)
