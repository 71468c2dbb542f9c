"""
Credit planning helpers.

"Smart input" for the credit form (any two of amount, payment and term
given the rate), plus read-only views over schedules: summaries,
reminders and per-month loan totals.
"""

from datetime import date, timedelta
from decimal import ROUND_CEILING, Decimal
from typing import Iterable, Optional

from finance_core.config import get_settings
from finance_core.credits.engine import annuity_payment, monthly_rate
from finance_core.dates import in_month
from finance_core.models.credit import (
    Credit,
    CreditMonthTotals,
    CreditStatus,
    CreditSummary,
    UpcomingPayment,
)
from finance_core.money import ZERO, round_to_cents, to_decimal


def _valid_rate(annual_rate_percent) -> Optional[Decimal]:
    if annual_rate_percent is None:
        return None
    rate = to_decimal(annual_rate_percent)
    return rate if rate >= ZERO else None


# =============================================================================
# SMART INPUT
# =============================================================================

def calculate_annuity_payment(amount, annual_rate_percent, term_months) -> Optional[Decimal]:
    """Amount + rate + term -> monthly payment. None when the inputs are unusable."""
    amount = to_decimal(amount)
    rate = _valid_rate(annual_rate_percent)
    if amount <= ZERO or rate is None or not term_months or term_months <= 0:
        return None
    return annuity_payment(amount, monthly_rate(rate), int(term_months))


def calculate_term_from_payment(amount, annual_rate_percent, monthly_payment) -> Optional[int]:
    """
    Amount + rate + payment -> term in whole months (rounded up).

    None when the payment does not even cover the first month's interest,
    since such a loan is never repaid.
    """
    amount = to_decimal(amount)
    payment = to_decimal(monthly_payment)
    rate = _valid_rate(annual_rate_percent)
    if amount <= ZERO or payment <= ZERO or rate is None:
        return None

    r = monthly_rate(rate)
    if r == ZERO:
        return int((amount / payment).to_integral_value(rounding=ROUND_CEILING))

    ratio = amount * r / payment
    if ratio >= 1:
        return None
    term = -(1 - ratio).ln() / (1 + r).ln()
    return int(term.to_integral_value(rounding=ROUND_CEILING))


def calculate_amount_from_payment(annual_rate_percent, term_months, monthly_payment) -> Optional[Decimal]:
    """Rate + term + payment -> largest amount that payment repays."""
    payment = to_decimal(monthly_payment)
    rate = _valid_rate(annual_rate_percent)
    if rate is None or not term_months or term_months <= 0 or payment <= ZERO:
        return None

    r = monthly_rate(rate)
    if r == ZERO:
        return round_to_cents(payment * term_months)
    return round_to_cents(payment * (1 - (1 + r) ** -int(term_months)) / r)


# =============================================================================
# VIEWS
# =============================================================================

def credit_summary(credit: Credit) -> CreditSummary:
    """Totals over the whole schedule plus what has actually been paid."""
    total_interest = ZERO
    total_planned = ZERO
    actual_paid = ZERO
    balance = credit.amount or ZERO

    for item in credit.schedule:
        total_interest += item.interest_part
        total_planned += item.planned_payment
        if item.paid:
            actual_paid += item.paid_amount if item.paid_amount is not None else item.planned_payment
            balance = round_to_cents(balance - item.principal_part)

    return CreditSummary(
        total_interest=round_to_cents(total_interest),
        total_planned=round_to_cents(total_planned),
        actual_paid=round_to_cents(actual_paid),
        current_balance=max(ZERO, balance),
        months_remaining=sum(1 for item in credit.schedule if not item.paid),
    )


def upcoming_payments(
    credits: Iterable[Credit],
    today: Optional[date] = None,
    days_ahead: Optional[int] = None,
) -> list[UpcomingPayment]:
    """Unpaid rows of active credits due between today and `days_ahead` days from now."""
    today = today or date.today()
    if days_ahead is None:
        days_ahead = get_settings().finance.upcoming_payment_days
    horizon = today + timedelta(days=days_ahead)

    upcoming = [
        UpcomingPayment(
            credit_id=credit.id,
            credit_name=credit.name,
            item_id=item.id,
            month_number=item.month_number,
            payment_date=item.payment_date,
            amount=item.planned_payment,
        )
        for credit in credits
        if credit.status == CreditStatus.ACTIVE
        for item in credit.schedule
        if not item.paid and today <= item.payment_date <= horizon
    ]
    upcoming.sort(key=lambda payment: payment.payment_date)
    return upcoming


def credit_payments_in_month(credits: Iterable[Credit], year: int, month: int) -> CreditMonthTotals:
    """
    Loan payments scheduled in a month: everything planned, and the part
    already paid. Archived credits still count, since their history is real.
    """
    planned = ZERO
    paid = ZERO
    for credit in credits:
        for item in credit.schedule:
            if not in_month(item.payment_date, year, month):
                continue
            planned += item.planned_payment
            if item.paid:
                paid += item.paid_amount if item.paid_amount is not None else item.planned_payment
    return CreditMonthTotals(planned=planned, paid=paid)
