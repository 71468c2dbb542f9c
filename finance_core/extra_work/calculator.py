"""
Extra-Work Shift Calculator

A shift is a set of work dates billed at a daily rate, with an optional
higher rate for Saturdays and Sundays. Its total is never stored; it is
recomputed from the dates and rates every time.

DESIGN DECISION: Payment mode is an explicit tag on the record. Rebuilding
payments after an edit keeps whatever has already been marked paid, so
changing a rate never silently "un-pays" a day.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from finance_core.models.records import (
    ExtraWork,
    ExtraWorkPayment,
    PaymentMode,
    ShiftPaymentStatus,
)
from finance_core.money import HUNDRED, ZERO, to_decimal
from finance_core.rates import rate_for_date, shift_total

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = frozenset({
    "work_dates",
    "daily_rate",
    "weekend_rate",
    "payment_mode",
    "payments",
    "notes",
})


def total_amount(work: ExtraWork) -> Decimal:
    """Sum of day rates over the shift's work dates."""
    return work.total_amount


# =============================================================================
# PAYMENT MODE
# =============================================================================

def legacy_payment_mode(work: ExtraWork) -> PaymentMode:
    """
    Infer the mode of a record saved before modes were tagged.

    Exactly one payment covering the total means single, one payment per
    work date means daily, anything else is manual.
    """
    payments = work.payments
    if len(payments) == 1 and payments[0].amount == work.total_amount:
        return PaymentMode.SINGLE
    if payments and len(payments) == len(work.work_dates):
        return PaymentMode.DAILY
    return PaymentMode.MANUAL


def resolve_payment_mode(work: ExtraWork) -> PaymentMode:
    """The explicit tag when present, otherwise the legacy inference."""
    if work.payment_mode is not None:
        return work.payment_mode
    return legacy_payment_mode(work)


def build_payments(
    mode: PaymentMode,
    work_dates: list[date],
    daily_rate: Decimal,
    weekend_rate: Optional[Decimal] = None,
    payment_date: Optional[date] = None,
    paid: bool = False,
    manual_payments: Optional[Iterable[ExtraWorkPayment]] = None,
) -> list[ExtraWorkPayment]:
    """
    Payments for a shift in the given mode.

    single: one payment of the total, dated `payment_date` (default: the
            last work date)
    daily:  one payment per work date, on that date, for that day's rate
    manual: the given payments, unchanged
    """
    daily_rate = to_decimal(daily_rate)
    weekend_rate = None if weekend_rate is None else to_decimal(weekend_rate)
    dates = sorted(set(work_dates))

    if mode == PaymentMode.SINGLE:
        when = payment_date or (dates[-1] if dates else None)
        return [ExtraWorkPayment(
            date=when,
            amount=shift_total(dates, daily_rate, weekend_rate),
            paid=paid,
        )]

    if mode == PaymentMode.DAILY:
        return [
            ExtraWorkPayment(
                date=day,
                amount=rate_for_date(day, daily_rate, weekend_rate),
                paid=paid,
            )
            for day in dates
        ]

    return list(manual_payments or [])


# =============================================================================
# CREATE / UPDATE
# =============================================================================

def create_extra_work(
    work_dates: Iterable,
    daily_rate,
    weekend_rate=None,
    payment_mode: PaymentMode = PaymentMode.SINGLE,
    payment_date: Optional[date] = None,
    paid: bool = False,
    manual_payments: Optional[Iterable[ExtraWorkPayment]] = None,
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> ExtraWork:
    """Create a tagged shift record with its payments built for the mode."""
    today = today or date.today()
    draft = ExtraWork(
        work_dates=list(work_dates),
        daily_rate=daily_rate,
        weekend_rate=weekend_rate,
        payment_mode=payment_mode,
        notes=notes,
        created_at=today,
        updated_at=today,
    )
    payments = build_payments(
        payment_mode,
        draft.work_dates,
        draft.daily_rate,
        draft.weekend_rate,
        payment_date=payment_date,
        paid=paid,
        manual_payments=manual_payments,
    )
    return draft.model_copy(update={"payments": payments})


def _rederive_payments(
    mode: PaymentMode,
    previous: list[ExtraWorkPayment],
    work: ExtraWork,
) -> list[ExtraWorkPayment]:
    """Rebuild single/daily payments for new dates or rates, keeping paid flags."""
    if mode == PaymentMode.SINGLE:
        old = previous[0] if previous else None
        fresh = build_payments(
            mode,
            work.work_dates,
            work.daily_rate,
            work.weekend_rate,
            payment_date=old.date if old else None,
            paid=old.paid if old else False,
        )
        if old is not None:
            fresh = [fresh[0].model_copy(update={"id": old.id})]
        return fresh

    # Daily: a payment survives if its date is still a work date
    by_date = {payment.date: payment for payment in previous if payment.date is not None}
    payments = []
    for payment in build_payments(mode, work.work_dates, work.daily_rate, work.weekend_rate):
        old = by_date.get(payment.date)
        if old is not None:
            payment = payment.model_copy(update={"id": old.id, "paid": old.paid})
        payments.append(payment)
    return payments


def update_extra_work(work: ExtraWork, today: Optional[date] = None, **changes) -> ExtraWork:
    """
    Return an edited copy of a shift.

    Single and daily payments are re-derived from the new dates and rates;
    manual payments are only replaced when `payments` is passed explicitly.

    Raises:
        TypeError: on fields that cannot be edited (including total_amount)
    """
    unknown = set(changes) - _UPDATABLE_FIELDS
    if unknown:
        raise TypeError(f"Cannot update extra work fields: {', '.join(sorted(unknown))}")

    previous_mode = resolve_payment_mode(work)
    data = work.model_dump(exclude={"total_amount"})
    data.update(changes)
    data["updated_at"] = today or date.today()
    if data.get("payment_mode") is None:
        data["payment_mode"] = previous_mode
    updated = ExtraWork.model_validate(data)

    mode = updated.payment_mode
    if mode == PaymentMode.MANUAL:
        return updated

    previous = work.payments if mode == previous_mode else []
    if "payments" in changes and mode == previous_mode:
        previous = updated.payments
    if mode != previous_mode:
        logger.debug(
            "extra_work_mode_changed",
            work_id=work.id,
            previous=previous_mode.value,
            current=mode.value,
        )
    return updated.model_copy(update={"payments": _rederive_payments(mode, previous, updated)})


# =============================================================================
# PAYMENT PROGRESS
# =============================================================================

def paid_amount(work: ExtraWork) -> Decimal:
    """Sum of payments marked paid."""
    return sum((payment.amount for payment in work.payments if payment.paid), ZERO)


def paid_percent(work: ExtraWork) -> Decimal:
    """Paid share of the total in percent, clamped to 0..100. Zero for an empty shift."""
    total = work.total_amount
    if total <= ZERO:
        return ZERO
    percent = paid_amount(work) / total * HUNDRED
    return max(ZERO, min(HUNDRED, percent))


def payment_status(work: ExtraWork) -> ShiftPaymentStatus:
    percent = paid_percent(work)
    if percent >= HUNDRED:
        return ShiftPaymentStatus.PAID
    if percent > ZERO:
        return ShiftPaymentStatus.PARTIAL
    return ShiftPaymentStatus.UNPAID


def is_fully_paid(work: ExtraWork) -> bool:
    return payment_status(work) == ShiftPaymentStatus.PAID


def works_by_date(extra_works: Iterable[ExtraWork]) -> dict[date, list[ExtraWork]]:
    """Calendar lookup: each work date mapped to the shifts that include it."""
    lookup: dict[date, list[ExtraWork]] = defaultdict(list)
    for work in extra_works:
        for day in work.work_dates:
            lookup[day].append(work)
    return dict(lookup)
