"""
Event and Summary Models

MonetaryEvent is the common currency of the aggregation layer: every task,
income record and shift payment is reduced to a list of these before any
totals are computed. Events are derived on every call and never persisted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class EventSource(str, Enum):
    """Record type an event was derived from."""
    TASK = "task"
    INCOME = "income"
    EXTRA_WORK = "extra_work"


class EventOrigin(str, Enum):
    """Which part of the source record produced the event."""
    SUBTASK = "subtask"
    PAYMENT = "payment"
    EXPENSE = "expense"
    FALLBACK = "fallback"                        # synthetic event for an unitemized task
    INCOME = "income"
    EXTRA_WORK_PAYMENT = "extra_work_payment"


# =============================================================================
# EVENTS
# =============================================================================

class MonetaryEvent(BaseModel):
    """A dated movement of money."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    date: date
    tax_rate_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="Tax withheld from income, in percent"
    )
    kind: EventKind
    source: EventSource
    source_id: Optional[str] = None
    origin: EventOrigin
    label: Optional[str] = None

    @property
    def tax_amount(self) -> Decimal:
        """Tax owed on this event (zero for expenses)."""
        if self.kind != EventKind.INCOME:
            return Decimal("0")
        return self.amount * self.tax_rate_percent / Decimal("100")

    @property
    def net_amount(self) -> Decimal:
        """Signed contribution to profit: income after tax, or minus the expense."""
        if self.kind == EventKind.INCOME:
            return self.amount - self.tax_amount
        return -self.amount


# =============================================================================
# SUMMARIES
# =============================================================================

class DaySummary(BaseModel):
    """Totals for one calendar day. Idle days are present with zeros."""

    date_key: str = Field(..., description="Day in YYYY-MM-DD format")
    day: date
    income: Decimal = Decimal("0")
    extra_work_income: Decimal = Decimal("0")
    taxes: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    has_additional_income: bool = Field(
        default=False,
        description="True when an income record or a shift payment landed on this day"
    )


class MonthSummary(BaseModel):
    """
    Totals for the month containing `now`.

    CRITICAL: Loan payments are reported in their own fields and are never
    part of `total_expenses` or `profit`.
    """

    year: int
    month: int = Field(..., ge=1, le=12)

    income_from_sites: Decimal = Field(
        default=Decimal("0"),
        description="Income from tasks"
    )
    additional_income: Decimal = Field(
        default=Decimal("0"),
        description="Income records not tied to a task"
    )
    extra_work_income: Decimal = Field(
        default=Decimal("0"),
        description="Paid shift payments"
    )
    total_income: Decimal = Decimal("0")
    total_taxes: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    average_check: Decimal = Field(
        default=Decimal("0"),
        description="Task income divided by the number of tasks that produced it"
    )
    expected: Decimal = Field(
        default=Decimal("0"),
        description="Unpaid remainder of tasks due this month"
    )

    credit_payments_planned: Decimal = Decimal("0")
    credit_payments_paid: Decimal = Decimal("0")
    planned_expenses: Decimal = Field(
        default=Decimal("0"),
        description="Planned expenses from the month's goal (informational)"
    )

    @property
    def month_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class FinanceSummary(BaseModel):
    """Day map plus month totals, as rendered by the dashboard."""

    month: MonthSummary
    by_day: dict[str, DaySummary] = Field(default_factory=dict)

    @property
    def days(self) -> list[DaySummary]:
        """Day rows in calendar order."""
        return [self.by_day[key] for key in sorted(self.by_day)]
