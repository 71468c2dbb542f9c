"""
Income, Extra-Work and Goal Models

These are the non-task money records the host keeps next to the board:
- Ad-hoc incomes (gifts, side jobs, anything not tied to a task)
- Extra-work shifts billed per day, with their payments
- Monthly financial goals (planned expenses, manual profit override)
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import Field, computed_field, field_validator

from finance_core.dates import parse_date_only
from finance_core.models.base import (
    TAX_RATE_ALIASES,
    Amount,
    LenientAmount,
    LenientDate,
    NullableList,
    SnapshotModel,
)
from finance_core.rates import shift_total


def _new_id() -> str:
    return uuid4().hex


# =============================================================================
# AD-HOC INCOME
# =============================================================================

class Income(SnapshotModel):
    """Income not attached to any task. Always exactly one dated event."""

    id: str = Field(default_factory=_new_id)
    title: str = ""
    amount: Amount = Decimal("0")
    date: LenientDate = None
    tax_rate: LenientAmount = Field(
        default=None,
        validation_alias=TAX_RATE_ALIASES,
        description="Tax rate in percent (optional)"
    )
    notes: Optional[str] = None


# =============================================================================
# EXTRA WORK (SHIFTS)
# =============================================================================

class PaymentMode(str, Enum):
    """
    How a shift gets paid.

    DESIGN DECISION: The mode is an explicit tag chosen when the shift is
    created. Older records were classified by the shape of their payment
    list, which mislabels a manual shift that happens to have one payment
    per work date; that inference is only used for records with no tag.
    """
    SINGLE = "single"    # one payment for the whole shift
    DAILY = "daily"      # one payment per work date
    MANUAL = "manual"    # arbitrary payments entered by hand


class ShiftPaymentStatus(str, Enum):
    """Payment progress of a shift."""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class ExtraWorkPayment(SnapshotModel):
    """A payment received (or expected) for a shift."""

    id: str = Field(default_factory=_new_id)
    date: LenientDate = None
    amount: Amount = Decimal("0")
    paid: bool = False


class ExtraWork(SnapshotModel):
    """
    A block of extra-work days billed at a daily rate.

    Work dates are calendar days; any time component is ignored.
    `total_amount` is always derived from the dates and rates and cannot
    be set by hand.
    """

    id: str = Field(default_factory=_new_id)
    work_dates: list[date] = Field(default_factory=list)
    daily_rate: Amount = Decimal("0")
    weekend_rate: LenientAmount = Field(
        default=None,
        description="Rate for Saturday/Sunday; the daily rate applies when unset"
    )
    payment_mode: Optional[PaymentMode] = Field(
        default=None,
        description="Explicit payment mode; None only for legacy records"
    )
    payments: Annotated[list[ExtraWorkPayment], NullableList] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: LenientDate = None
    updated_at: LenientDate = None

    @field_validator('work_dates', mode='before')
    @classmethod
    def normalize_work_dates(cls, v) -> list:
        """Parse, drop unreadable entries, de-duplicate and sort."""
        if v is None:
            return []
        parsed = {parse_date_only(item) for item in v}
        parsed.discard(None)
        return sorted(parsed)

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        """Sum of day rates over all work dates."""
        return shift_total(self.work_dates, self.daily_rate, self.weekend_rate)


# =============================================================================
# MONTHLY GOALS
# =============================================================================

class MonthlyExpense(SnapshotModel):
    """Planned recurring expense for a month (rent, subscriptions, ...)."""

    id: str = Field(default_factory=_new_id)
    name: str = ""
    amount: Amount = Decimal("0")
    completed: bool = False


class MonthlyFinancialGoal(SnapshotModel):
    """Per-month plan. `manual_profit` replaces the computed profit in reports."""

    month_key: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="Month in YYYY-MM format"
    )
    expenses: Annotated[list[MonthlyExpense], NullableList] = Field(default_factory=list)
    completed: bool = False
    manual_profit: LenientAmount = None
