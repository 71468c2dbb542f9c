"""
Calendar-date helpers.

Every record handled by the core carries calendar dates only. Hosts persist
them either as `YYYY-MM-DD` or as ISO-8601 date-times pinned to midnight UTC;
the time component is always dropped here, never converted between zones,
so a payment made "on the 15th" stays on the 15th wherever it is read.
"""

import calendar
import re
from datetime import date, datetime
from typing import Optional

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T\s]|$)")
_FALLBACK_FORMATS = ("%d.%m.%Y", "%d/%m/%Y", "%Y/%m/%d")


def parse_date_only(value) -> Optional[date]:
    """
    Parse a value into a calendar date, or None if it cannot be read.

    Never raises: malformed input is treated as an absent date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    match = _ISO_PREFIX.match(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def date_key(d: date) -> str:
    """`YYYY-MM-DD` key used for per-day maps."""
    return d.isoformat()


def month_key(d: date) -> str:
    """`YYYY-MM` key used for monthly goals and archives."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month_key(key: str) -> Optional[tuple[int, int]]:
    """`YYYY-MM` -> (year, month), or None when malformed."""
    try:
        year_str, month_str = key.strip().split("-")[:2]
        year, month = int(year_str), int(month_str)
    except (AttributeError, ValueError):
        return None
    if not 1 <= month <= 12:
        return None
    return year, month


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def month_days(year: int, month: int) -> list[date]:
    return [date(year, month, day) for day in range(1, days_in_month(year, month) + 1)]


def in_month(d: Optional[date], year: int, month: int) -> bool:
    return d is not None and d.year == year and d.month == month


def add_months(start: date, months: int, day: Optional[int] = None) -> date:
    """
    Shift `start` by a number of months.

    The result lands on `day` (default: start's own day), clamped to the
    length of the target month, so the 31st becomes the 28th/29th in February.
    """
    index = start.year * 12 + (start.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    wanted = day if day is not None else start.day
    return date(year, month, min(max(wanted, 1), days_in_month(year, month)))


def month_start(d: date) -> date:
    return d.replace(day=1)


def is_weekend(d: date) -> bool:
    """Saturday or Sunday. Holidays and custom days off are the calendar's business."""
    return d.weekday() >= 5
