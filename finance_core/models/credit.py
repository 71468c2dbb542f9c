"""
Credit Models

A credit is a loan repaid on a monthly schedule. The schedule is generated
by the amortization engine and only ever replaced wholesale, except for rows
already marked paid, which are history and never regenerated.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import AliasChoices, Field, field_validator

from finance_core.dates import parse_date_only
from finance_core.models.base import (
    Amount,
    LenientAmount,
    LenientDate,
    NullableList,
    SnapshotModel,
)


class ScheduleType(str, Enum):
    """Repayment schedule type."""
    ANNUITY = "annuity"                  # constant total payment
    DIFFERENTIATED = "differentiated"    # constant principal, declining payment


class CreditStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


def _payment_day(value):
    """
    Day of month for payments.

    Older records stored a full date ("2024-12-15") or a numeric string
    ("15") here; both are reduced to the day number.
    """
    if value is None or value == "":
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value if 1 <= value <= 31 else None
    parsed = parse_date_only(value)
    if parsed is not None:
        return parsed.day
    try:
        day = int(str(value).strip())
    except ValueError:
        return None
    return day if 1 <= day <= 31 else None


# =============================================================================
# SCHEDULE
# =============================================================================

class CreditScheduleItem(SnapshotModel):
    """
    One month of an amortization schedule.

    Invariants (guaranteed by the engine, not re-checked here):
    - interest_part + principal_part == planned_payment
    - remaining_balance never grows and is exactly zero on the final row
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    credit_id: Optional[str] = None
    month_number: int = Field(..., ge=1)
    payment_date: date
    planned_payment: Decimal
    interest_part: Decimal
    principal_part: Decimal
    remaining_balance: Decimal
    paid: bool = False
    paid_amount: Optional[Decimal] = None
    paid_at: Optional[date] = None


class CreditParams(SnapshotModel):
    """
    Inputs for building a schedule.

    No range checks here on purpose: the engine rejects bad values with
    InvalidCreditParamsError before generating anything, and the validator
    turns the same checks into form messages.
    """

    amount: Amount
    annual_rate_percent: Amount
    term_months: int
    start_date: date
    payment_day: Optional[int] = None
    schedule_type: ScheduleType = ScheduleType.ANNUITY

    @field_validator('payment_day', mode='before')
    @classmethod
    def parse_payment_day(cls, v):
        return _payment_day(v)


# =============================================================================
# CREDIT
# =============================================================================

class Credit(SnapshotModel):
    """Loan or credit card with its repayment schedule."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = ""
    description: Optional[str] = None
    amount: LenientAmount = None
    current_balance: LenientAmount = None
    interest_rate: LenientAmount = Field(
        default=None,
        description="Annual interest rate in percent"
    )
    term_months: Optional[int] = None
    monthly_payment: LenientAmount = None
    schedule_type: ScheduleType = ScheduleType.ANNUITY
    start_date: LenientDate = None
    payment_day: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("payment_day", "paymentDay", "paymentDate"),
    )
    status: CreditStatus = CreditStatus.ACTIVE
    notes: Optional[str] = None
    schedule: Annotated[list[CreditScheduleItem], NullableList] = Field(default_factory=list)

    @field_validator('payment_day', mode='before')
    @classmethod
    def parse_payment_day(cls, v):
        return _payment_day(v)

    @property
    def paid_items(self) -> list[CreditScheduleItem]:
        return [item for item in self.schedule if item.paid]


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class CreditSummary(SnapshotModel):
    """Totals over a credit's schedule."""

    total_interest: Decimal
    total_planned: Decimal
    actual_paid: Decimal
    current_balance: Decimal
    months_remaining: int


class UpcomingPayment(SnapshotModel):
    """An unpaid schedule row due soon, for reminders."""

    credit_id: str
    credit_name: str
    item_id: str
    month_number: int
    payment_date: date
    amount: Decimal


class CreditMonthTotals(SnapshotModel):
    """Loan payments falling in one month, reported next to the month summary."""

    planned: Amount = Decimal("0")
    paid: Amount = Decimal("0")
