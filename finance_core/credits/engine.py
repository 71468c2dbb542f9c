"""
Credit Amortization Engine

Builds month-by-month repayment schedules and applies payments to them.

DESIGN DECISIONS:
1. Every monetary field is rounded to cents (half-up) per row, and the
   final row's principal absorbs whatever residual the rounding left, so
   the balance ends at exactly zero and the principal parts sum to the
   amount borrowed.
2. Paid rows are history. A rebuild carries them over untouched and only
   regenerates the unpaid months from the current balance.
3. Applying a payment touches one row and the credit's balance, nothing
   else. Re-amortizing after a partial payment is an explicit rebuild.

Bad parameters are rejected before a single row is generated.
"""

from datetime import date
from decimal import Decimal
from typing import Iterator, Optional

import structlog

from finance_core.dates import add_months
from finance_core.models.credit import (
    Credit,
    CreditParams,
    CreditScheduleItem,
    ScheduleType,
)
from finance_core.money import HUNDRED, ZERO, round_to_cents

logger = structlog.get_logger(__name__)

MONTHS_PER_YEAR = Decimal("12")


# =============================================================================
# ERRORS
# =============================================================================

class CreditError(ValueError):
    """Base error for amortization entry points."""
    pass


class InvalidCreditParamsError(CreditError):
    """Credit parameters that cannot produce a schedule."""

    def __init__(self, field: str, value, message: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid credit parameter {field}: {value!r}")


class ScheduleItemNotFoundError(CreditError):
    """No schedule row with the given id."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Schedule item not found: {item_id}")


# =============================================================================
# SCHEDULE GENERATION
# =============================================================================

def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Annual percentage rate -> monthly fraction (12% -> 0.01)."""
    if annual_rate_percent is None or annual_rate_percent <= ZERO:
        return ZERO
    return annual_rate_percent / MONTHS_PER_YEAR / HUNDRED


def annuity_payment(principal: Decimal, rate: Decimal, term_months: int) -> Decimal:
    """Constant payment `P*r / (1 - (1+r)^-n)`, or `P/n` for an interest-free loan."""
    if rate == ZERO:
        return round_to_cents(principal / term_months)
    return round_to_cents(principal * rate / (1 - (1 + rate) ** -term_months))


def check_params(params: CreditParams) -> None:
    """
    Raises:
        InvalidCreditParamsError: on a non-positive term, a negative rate or
            a non-positive amount
    """
    if params.term_months <= 0:
        raise InvalidCreditParamsError(
            "term_months", params.term_months, "Term must be at least one month"
        )
    if params.annual_rate_percent < ZERO:
        raise InvalidCreditParamsError(
            "annual_rate_percent", params.annual_rate_percent, "Interest rate cannot be negative"
        )
    if params.amount <= ZERO:
        raise InvalidCreditParamsError(
            "amount", params.amount, "Credit amount must be positive"
        )


def _amortize(
    principal: Decimal,
    rate: Decimal,
    term_months: int,
    schedule_type: ScheduleType,
) -> Iterator[tuple[Decimal, Decimal, Decimal, Decimal]]:
    """
    Yield (payment, interest, principal, remaining balance) for each month.

    Always yields exactly `term_months` rows. Principal is capped at the
    outstanding balance, so once rounding has retired the debt the remaining
    rows carry zero principal.
    """
    balance = round_to_cents(principal)
    if schedule_type == ScheduleType.DIFFERENTIATED:
        fixed_principal = round_to_cents(balance / term_months)
    else:
        payment = annuity_payment(balance, rate, term_months)

    for month in range(1, term_months + 1):
        interest = round_to_cents(balance * rate)
        if month == term_months:
            # Final row takes the residual
            principal_part = balance
        elif schedule_type == ScheduleType.DIFFERENTIATED:
            principal_part = min(fixed_principal, balance)
        else:
            principal_part = min(round_to_cents(payment - interest), balance)
        remaining = round_to_cents(balance - principal_part)

        yield (
            round_to_cents(interest + principal_part),
            interest,
            principal_part,
            remaining,
        )

        balance = remaining


def _schedule_rows(
    principal: Decimal,
    params: CreditParams,
    month_numbers: list[int],
    credit_id: Optional[str],
) -> list[CreditScheduleItem]:
    rate = monthly_rate(params.annual_rate_percent)
    payment_day = params.payment_day or params.start_date.day
    rows = _amortize(principal, rate, len(month_numbers), params.schedule_type)
    return [
        CreditScheduleItem(
            credit_id=credit_id,
            month_number=month_number,
            payment_date=add_months(params.start_date, month_number - 1, day=payment_day),
            planned_payment=payment,
            interest_part=interest,
            principal_part=principal_part,
            remaining_balance=remaining,
        )
        for month_number, (payment, interest, principal_part, remaining) in zip(month_numbers, rows)
    ]


def build_schedule(params: CreditParams, credit_id: Optional[str] = None) -> list[CreditScheduleItem]:
    """
    Full repayment schedule for a new credit.

    Row 1 falls in the start date's month; row i lands i-1 months later on
    the payment day (default: the start date's day), clamped to the end of
    shorter months.

    Raises:
        InvalidCreditParamsError: before generating anything, on bad params
    """
    try:
        check_params(params)
    except InvalidCreditParamsError as e:
        logger.warning("credit_params_rejected", field=e.field, value=str(e.value))
        raise

    schedule = _schedule_rows(
        params.amount,
        params,
        list(range(1, params.term_months + 1)),
        credit_id,
    )
    logger.debug(
        "schedule_built",
        schedule_type=params.schedule_type.value,
        rows=len(schedule),
        first_payment=str(schedule[0].planned_payment) if schedule else None,
    )
    return schedule


# =============================================================================
# BALANCE
# =============================================================================

def recalculate_current_balance(credit: Credit) -> Decimal:
    """Amount borrowed minus the principal of every paid row, never below zero."""
    balance = credit.amount or ZERO
    for item in sorted(credit.schedule, key=lambda row: row.month_number):
        if item.paid:
            balance = round_to_cents(balance - item.principal_part)
    return max(ZERO, balance)


def _current_balance(credit: Credit) -> Decimal:
    if credit.current_balance is not None:
        return credit.current_balance
    return recalculate_current_balance(credit)


# =============================================================================
# REBUILD
# =============================================================================

def rebuild_schedule(credit: Credit, new_params: CreditParams) -> list[CreditScheduleItem]:
    """
    Regenerate a schedule after the credit's terms changed.

    Paid rows are kept exactly as they are. Every month number of the new
    term that has no paid row is regenerated from the credit's current
    balance, with payment dates aligned to `new_params.start_date` by month
    number.

    Raises:
        InvalidCreditParamsError: on bad params, or when the new term leaves
            no unpaid month for an outstanding balance
    """
    try:
        check_params(new_params)
    except InvalidCreditParamsError as e:
        logger.warning("credit_params_rejected", credit_id=credit.id, field=e.field, value=str(e.value))
        raise

    paid_rows = sorted(credit.paid_items, key=lambda row: row.month_number)
    paid_numbers = {row.month_number for row in paid_rows}
    open_months = [
        month for month in range(1, new_params.term_months + 1)
        if month not in paid_numbers
    ]

    balance = _current_balance(credit)
    if balance <= ZERO:
        return paid_rows
    if not open_months:
        raise InvalidCreditParamsError(
            "term_months",
            new_params.term_months,
            "Term leaves no unpaid months for the outstanding balance",
        )

    regenerated = _schedule_rows(balance, new_params, open_months, credit.id)
    logger.debug(
        "schedule_rebuilt",
        credit_id=credit.id,
        kept_paid_rows=len(paid_rows),
        regenerated_rows=len(regenerated),
    )
    return sorted(paid_rows + regenerated, key=lambda row: row.month_number)


def params_from_credit(credit: Credit, **overrides) -> CreditParams:
    """Schedule parameters currently stored on a credit, with optional overrides."""
    values = {
        "amount": credit.amount,
        "annual_rate_percent": credit.interest_rate or ZERO,
        "term_months": credit.term_months or 0,
        "start_date": credit.start_date,
        "payment_day": credit.payment_day,
        "schedule_type": credit.schedule_type,
    }
    values.update(overrides)
    return CreditParams(**values)


# =============================================================================
# PAYMENTS
# =============================================================================

def _find_item(credit: Credit, item_id: str) -> int:
    for index, item in enumerate(credit.schedule):
        if item.id == item_id:
            return index
    raise ScheduleItemNotFoundError(item_id)


def apply_payment(
    credit: Credit,
    item_id: str,
    paid_amount: Optional[Decimal] = None,
    paid_at: Optional[date] = None,
) -> Credit:
    """
    Mark one schedule row paid and reduce the balance by its principal.

    Applying to a row that is already paid returns the credit unchanged.

    Raises:
        ScheduleItemNotFoundError: if no row has this id
    """
    index = _find_item(credit, item_id)
    item = credit.schedule[index]
    if item.paid:
        return credit

    paid_item = item.model_copy(update={
        "paid": True,
        "paid_amount": round_to_cents(paid_amount) if paid_amount is not None else item.planned_payment,
        "paid_at": paid_at or date.today(),
    })
    schedule = list(credit.schedule)
    schedule[index] = paid_item
    balance = max(ZERO, round_to_cents(_current_balance(credit) - item.principal_part))
    return credit.model_copy(update={"schedule": schedule, "current_balance": balance})


def revert_payment(credit: Credit, item_id: str) -> Credit:
    """
    Undo a payment, restoring the row's principal to the balance.

    Reverting an unpaid row returns the credit unchanged.

    Raises:
        ScheduleItemNotFoundError: if no row has this id
    """
    index = _find_item(credit, item_id)
    item = credit.schedule[index]
    if not item.paid:
        return credit

    schedule = list(credit.schedule)
    schedule[index] = item.model_copy(update={"paid": False, "paid_amount": None, "paid_at": None})
    balance = round_to_cents(_current_balance(credit) + item.principal_part)
    if credit.amount is not None:
        balance = min(balance, credit.amount)
    return credit.model_copy(update={"schedule": schedule, "current_balance": balance})
