"""Extra-work shifts: totals, payment modes and payment progress."""

from finance_core.extra_work.calculator import (
    build_payments,
    create_extra_work,
    is_fully_paid,
    legacy_payment_mode,
    paid_amount,
    paid_percent,
    payment_status,
    rate_for_date,
    resolve_payment_mode,
    shift_total,
    total_amount,
    update_extra_work,
    works_by_date,
)

__all__ = [
    "build_payments",
    "create_extra_work",
    "is_fully_paid",
    "legacy_payment_mode",
    "paid_amount",
    "paid_percent",
    "payment_status",
    "rate_for_date",
    "resolve_payment_mode",
    "shift_total",
    "total_amount",
    "update_extra_work",
    "works_by_date",
]
