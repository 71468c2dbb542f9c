"""
Derived Taxes

Tax rows are derived from task payments on every call, one row per
payment with a positive rate. The only persisted tax state is the host's
"paid" flag per row, keyed `task_id:payment_index`.

The tax year starts on a configurable day (default 3 December) and is
identified by the ISO date of that day, e.g. "2024-12-03".
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel

from finance_core.config import get_settings
from finance_core.events.normalizer import payment_amount
from finance_core.models.task import Task
from finance_core.money import HUNDRED, ZERO, round_to_cents


class DerivedTax(BaseModel):
    """Tax owed on one task payment."""

    key: str
    title: str
    payment_title: str
    tax_rate: Decimal
    payment_amount: Decimal
    tax_amount: Decimal
    date: Optional[dt.date] = None
    paid: bool = False
    year_key: Optional[str] = None


def tax_year_key(
    d: dt.date,
    start_month: Optional[int] = None,
    start_day: Optional[int] = None,
) -> str:
    """Key of the tax year containing `d`: the ISO date the year started on."""
    if start_month is None or start_day is None:
        settings = get_settings().finance
        start_month = start_month or settings.tax_year_start_month
        start_day = start_day or settings.tax_year_start_day
    boundary = dt.date(d.year, start_month, start_day)
    year = d.year if d >= boundary else d.year - 1
    return dt.date(year, start_month, start_day).isoformat()


def derive_taxes(
    tasks: Iterable[Task],
    paid_flags: Optional[Mapping[str, bool]] = None,
) -> list[DerivedTax]:
    """
    One row per task payment with a positive tax rate and amount.

    The payment's own rate wins over the task's. Rows are ordered unpaid
    first, then by payment date (undated rows first within each group).
    Undated payments have no tax year.
    """
    paid_flags = paid_flags or {}
    rows = []
    for task in tasks:
        for index, payment in enumerate(task.payments):
            rate = payment.tax_rate if payment.tax_rate is not None else task.tax_rate
            if rate is None or rate <= ZERO:
                continue
            amount = payment_amount(payment)
            if amount <= ZERO:
                continue

            key = f"{task.id}:{index}"
            rows.append(DerivedTax(
                key=key,
                title=task.title or "(untitled)",
                payment_title=payment.title or "Payment",
                tax_rate=rate,
                payment_amount=amount,
                tax_amount=round_to_cents(amount * rate / HUNDRED),
                date=payment.date,
                paid=paid_flags.get(key, False),
                year_key=tax_year_key(payment.date) if payment.date else None,
            ))

    rows.sort(key=lambda row: (row.paid, row.date is not None, row.date or dt.date.min))
    return rows


def total_taxes(rows: Iterable[DerivedTax]) -> Decimal:
    return sum((row.tax_amount for row in rows), ZERO)


def unpaid_taxes(rows: Iterable[DerivedTax]) -> Decimal:
    return sum((row.tax_amount for row in rows if not row.paid), ZERO)


def taxes_for_year(rows: Iterable[DerivedTax], year_key: str) -> list[DerivedTax]:
    return [row for row in rows if row.year_key == year_key]
