"""Weekday / weekend shift rates."""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finance_core.dates import is_weekend
from finance_core.money import ZERO


def rate_for_date(day: date, daily_rate: Decimal, weekend_rate: Optional[Decimal] = None) -> Decimal:
    """Saturday and Sunday pay `weekend_rate` when one is set, every other day pays `daily_rate`."""
    if weekend_rate is not None and is_weekend(day):
        return weekend_rate
    return daily_rate


def shift_total(
    work_dates: Iterable[date],
    daily_rate: Decimal,
    weekend_rate: Optional[Decimal] = None,
) -> Decimal:
    """Sum of the day rates over all work dates."""
    return sum(
        (rate_for_date(day, daily_rate, weekend_rate) for day in work_dates),
        ZERO,
    )
