"""
Task Models

A task is a unit of billable client work on the board. Its money lives in
three places, reflecting three bookkeeping habits:
1. Itemized subtasks, each with an amount and the date it was paid
2. Itemized payments (amount or qty x price), each optionally paid and dated
3. A bare budget (`amount`) that is simply marked paid when the work closes

The normalizer turns all three into one event stream, so nothing downstream
needs to know which habit a particular task followed.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import Field

from finance_core.models.base import (
    TAX_RATE_ALIASES,
    LenientAmount,
    LenientDate,
    NullableList,
    SnapshotModel,
)


class ColumnId(str, Enum):
    """Board column (task lifecycle stage)."""
    CLIENTS = "clients"
    UNPROCESSED = "unprocessed"
    NOT_STARTED = "notstarted"
    IN_WORK = "inwork"
    COMPLETED = "completed"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    PAUSED = "paused"


class SubTask(SnapshotModel):
    """Checklist item; when it carries an amount and a date it is a paid installment."""

    id: str = ""
    title: str = ""
    done: bool = False
    amount: LenientAmount = None
    date: LenientDate = None


class TaskPayment(SnapshotModel):
    """
    A planned or received payment.

    Either `amount` is set, or the payment is computed as `qty * price`.
    """

    title: Optional[str] = None
    date: LenientDate = None
    amount: LenientAmount = None
    qty: LenientAmount = None
    price: LenientAmount = None
    paid: bool = False
    tax_rate: LenientAmount = Field(
        default=None,
        validation_alias=TAX_RATE_ALIASES,
        description="Tax rate in percent for this payment; overrides the task rate"
    )
    calc_enabled: bool = False

    @property
    def value(self) -> Decimal:
        """Payment amount: explicit amount, else qty x price, else zero."""
        if self.amount is not None:
            return self.amount
        return (self.qty or Decimal("0")) * (self.price or Decimal("0"))


class TaskExpenseEntry(SnapshotModel):
    """Dated expense, optionally attributed to a contractor."""

    id: str = ""
    title: str = ""
    amount: LenientAmount = None
    date: LenientDate = None
    contractor_id: Optional[str] = None


class TaskPausedRange(SnapshotModel):
    """Inclusive period during which the task was on pause."""

    start: LenientDate = Field(default=None, alias="from")
    end: LenientDate = Field(default=None, alias="to")


class Task(SnapshotModel):
    """Snapshot of a board task as persisted by the host."""

    id: str
    title: str = ""

    # Money
    amount: LenientAmount = Field(
        default=None,
        description="Task budget"
    )
    expenses: LenientAmount = Field(
        default=None,
        description="Flat expenses total (informational; dated entries drive reports)"
    )
    tax_rate: LenientAmount = Field(
        default=None,
        validation_alias=TAX_RATE_ALIASES,
        description="Default tax rate in percent for the task's income"
    )
    payments: Annotated[list[TaskPayment], NullableList] = Field(default_factory=list)
    expenses_entries: Annotated[list[TaskExpenseEntry], NullableList] = Field(
        default_factory=list
    )
    subtasks: Annotated[list[SubTask], NullableList] = Field(default_factory=list)

    # Dates
    start_date: LenientDate = None
    deadline: LenientDate = None
    created_at: LenientDate = None
    updated_at: LenientDate = None

    # Lifecycle
    column_id: ColumnId = ColumnId.UNPROCESSED
    paused_from_column_id: Optional[ColumnId] = None
    paused_ranges: Annotated[list[TaskPausedRange], NullableList] = Field(
        default_factory=list
    )

    # References
    customer_id: Optional[str] = None
    contractor_id: Optional[str] = None

    @property
    def effective_column(self) -> ColumnId:
        """Column used for calculations: a paused task counts where it was paused from."""
        if self.column_id == ColumnId.PAUSED and self.paused_from_column_id:
            return self.paused_from_column_id
        return self.column_id
