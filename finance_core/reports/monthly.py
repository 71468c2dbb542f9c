"""
Multi-Month Reports

Report rows are built from the same merged event stream as the dashboard
aggregator, so a month's income in the report always equals the month's
income on the dashboard. The only deliberate difference: a manual profit
entered on the month's goal replaces the computed profit.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from finance_core.aggregation.engine import collect_events
from finance_core.dates import add_months, month_bounds, parse_month_key
from finance_core.events.tasks import is_task_active_in_month, is_task_archived, task_payment_info
from finance_core.models.records import ExtraWork, Income, MonthlyFinancialGoal
from finance_core.models.summary import EventKind, MonetaryEvent
from finance_core.models.task import Task
from finance_core.money import ZERO


class MonthKey(BaseModel):
    """A calendar month."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def from_date(cls, d: date) -> "MonthKey":
        return cls(year=d.year, month=d.month)

    @classmethod
    def from_key(cls, key: str) -> Optional["MonthKey"]:
        """Parse `YYYY-MM`; None when malformed."""
        parsed = parse_month_key(key)
        if parsed is None:
            return None
        return cls(year=parsed[0], month=parsed[1])

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def first_day(self) -> date:
        return month_bounds(self.year, self.month)[0]

    @property
    def last_day(self) -> date:
        return month_bounds(self.year, self.month)[1]

    @property
    def label(self) -> str:
        return self.first_day.strftime("%B %Y")

    def contains(self, d: Optional[date]) -> bool:
        return d is not None and d.year == self.year and d.month == self.month


def month_keys_between(start: date, end: date) -> list[MonthKey]:
    """Every month from `start`'s to `end`'s, inclusive, oldest first."""
    if end < start:
        start, end = end, start
    months = []
    current = start.replace(day=1)
    while current <= end:
        months.append(MonthKey.from_date(current))
        current = add_months(current, 1, day=1)
    return months


def last_months(count: int, today: Optional[date] = None) -> list[MonthKey]:
    """The `count` most recent months ending with the current one, oldest first."""
    today = today or date.today()
    if count <= 0:
        return []
    return month_keys_between(add_months(today, -(count - 1), day=1), today)


# =============================================================================
# MONTHLY ROWS
# =============================================================================

class MonthlyReportRow(BaseModel):
    """One month of the report table."""

    year: int
    month: int
    income: Decimal = ZERO
    taxes: Decimal = ZERO
    expenses: Decimal = ZERO
    computed_profit: Decimal = ZERO
    profit: Decimal = Field(
        default=ZERO,
        description="Manual profit from the month's goal when set, else the computed profit"
    )
    manual_profit_applied: bool = False
    active_tasks: int = Field(
        default=0,
        description="Tasks active for at least one day of the month"
    )

    @property
    def month_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def calculate_monthly_data(
    months: Iterable[MonthKey],
    tasks: Iterable[Task],
    incomes: Iterable[Income] = (),
    monthly_goals: Iterable[MonthlyFinancialGoal] = (),
    extra_works: Iterable[ExtraWork] = (),
) -> list[MonthlyReportRow]:
    """One report row per requested month, in the order given."""
    tasks = list(tasks)
    events = collect_events(tasks, incomes, extra_works)
    manual_profits = {
        goal.month_key: goal.manual_profit
        for goal in monthly_goals
        if goal.manual_profit is not None
    }

    rows = []
    for month in months:
        month_events = [event for event in events if month.contains(event.date)]
        income = sum((e.amount for e in month_events if e.kind == EventKind.INCOME), ZERO)
        taxes = sum((e.tax_amount for e in month_events), ZERO)
        expenses = sum((e.amount for e in month_events if e.kind == EventKind.EXPENSE), ZERO)
        computed = income - taxes - expenses
        manual = manual_profits.get(month.key)

        rows.append(MonthlyReportRow(
            year=month.year,
            month=month.month,
            income=income,
            taxes=taxes,
            expenses=expenses,
            computed_profit=computed,
            profit=manual if manual is not None else computed,
            manual_profit_applied=manual is not None,
            active_tasks=sum(
                1 for task in tasks if is_task_active_in_month(task, month.year, month.month)
            ),
        ))
    return rows


# =============================================================================
# TASKS BY MONTH
# =============================================================================

class TaskForMonth(BaseModel):
    """A task due in a month, with the money it brought in that month."""

    task_id: str
    title: str
    amount: Decimal = ZERO
    deadline: date
    events: list[MonetaryEvent] = Field(default_factory=list)

    @property
    def received(self) -> Decimal:
        return sum((event.amount for event in self.events), ZERO)


def tasks_for_month(month: MonthKey, tasks: Iterable[Task]) -> list[TaskForMonth]:
    """Tasks whose deadline falls in the month, regardless of column."""
    result = []
    for task in tasks:
        if not month.contains(task.deadline):
            continue
        events = [
            event for event in collect_events([task])
            if event.kind == EventKind.INCOME and month.contains(event.date)
        ]
        result.append(TaskForMonth(
            task_id=task.id,
            title=task.title or "(untitled)",
            amount=task.amount or ZERO,
            deadline=task.deadline,
            events=events,
        ))
    return result


# =============================================================================
# ARCHIVE
# =============================================================================

def archived_task_months(tasks: Iterable[Task], today: Optional[date] = None) -> list[str]:
    """Month keys of archived tasks' last payments, newest first."""
    today = today or date.today()
    months = {
        task_payment_info(task).last_payment_date.strftime("%Y-%m")
        for task in tasks
        if is_task_archived(task, today)
    }
    return sorted(months, reverse=True)


def archived_tasks_for_month(
    tasks: Iterable[Task],
    month_key: str,
    today: Optional[date] = None,
) -> list[Task]:
    """Archived tasks whose last payment fell in the month, most recent payment first."""
    month = MonthKey.from_key(month_key)
    if month is None:
        return []
    today = today or date.today()

    dated = []
    for task in tasks:
        if not is_task_archived(task, today):
            continue
        last = task_payment_info(task).last_payment_date
        if month.contains(last):
            dated.append((last, task))
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [task for _, task in dated]
