"""
Task payment info, activity ranges and board visibility.

Everything here is derived from the normalized event stream or the task's
own dates; nothing reads payments or subtasks directly.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from finance_core.config import get_settings
from finance_core.dates import add_months, month_bounds, month_start
from finance_core.events.normalizer import normalize
from finance_core.models.summary import EventKind
from finance_core.models.task import ColumnId, Task
from finance_core.money import ZERO

DateRange = tuple[date, date]


class TaskPaymentInfo(BaseModel):
    """How much of a task has been paid, and when the last money arrived."""

    model_config = ConfigDict(frozen=True)

    total_paid: Decimal = ZERO
    is_fully_paid: bool = False
    last_payment_date: Optional[date] = None


def task_payment_info(task: Task) -> TaskPaymentInfo:
    incomes = [event for event in normalize(task) if event.kind == EventKind.INCOME]
    total_paid = sum((event.amount for event in incomes), ZERO)
    last = max((event.date for event in incomes), default=None)
    return TaskPaymentInfo(
        total_paid=total_paid,
        is_fully_paid=task.amount is not None and total_paid >= task.amount,
        last_payment_date=last,
    )


def effective_column(task: Task) -> ColumnId:
    """Column used for calculations: a paused task counts where it was paused from."""
    return task.effective_column


# =============================================================================
# ACTIVITY
# =============================================================================

def _ordered(a: date, b: date) -> DateRange:
    return (a, b) if a <= b else (b, a)


def _overlaps(a: DateRange, b: DateRange) -> bool:
    return a[0] <= b[1] and a[1] >= b[0]


def task_active_ranges(task: Task) -> list[DateRange]:
    """
    Inclusive date ranges during which the task was being worked on.

    The life interval runs from start_date (or created_at) to deadline
    (or updated_at, start_date, created_at); paused ranges are cut out of it.
    A task with no usable dates has no active ranges.
    """
    life_start = task.start_date or task.created_at
    life_end = task.deadline or task.updated_at or task.start_date or task.created_at
    if life_start is None or life_end is None:
        return []
    life = _ordered(life_start, life_end)

    pauses = sorted(
        _ordered(pause.start, pause.end)
        for pause in task.paused_ranges
        if pause.start is not None and pause.end is not None
    )
    pauses = [pause for pause in pauses if _overlaps(pause, life)]

    ranges: list[DateRange] = []
    cursor = life[0]
    for pause_start, pause_end in pauses:
        if pause_start > cursor:
            active_end = min(pause_start - timedelta(days=1), life[1])
            if active_end >= cursor:
                ranges.append((cursor, active_end))
        resume = pause_end + timedelta(days=1)
        if resume > life[1]:
            return ranges
        cursor = max(cursor, resume)

    if cursor <= life[1]:
        ranges.append((cursor, life[1]))
    return ranges


def is_task_active_in_month(task: Task, year: int, month: int) -> bool:
    """True when at least one active day of the task falls in the month."""
    bounds = month_bounds(year, month)
    return any(_overlaps(active, bounds) for active in task_active_ranges(task))


# =============================================================================
# VISIBILITY
# =============================================================================

def is_task_archived(task: Task, today: date) -> bool:
    """
    A closed, fully paid task moves to the archive once the month of its
    last payment is over. Paused tasks are never archived.
    """
    if task.column_id == ColumnId.PAUSED:
        return False
    if task.effective_column != ColumnId.CLOSED:
        return False
    info = task_payment_info(task)
    if not info.is_fully_paid or info.last_payment_date is None:
        return False
    return month_start(info.last_payment_date) < month_start(today)


def is_task_visible(task: Task, today: date, months_ahead: Optional[int] = None) -> bool:
    """
    Whether the task belongs on the active board.

    Archived tasks are hidden, and so are planned tasks (not started / in
    work) whose deadline is more than `months_ahead` months away, unless
    they start this month or later.
    """
    if task.column_id == ColumnId.PAUSED:
        return True

    column = task.effective_column
    if column == ColumnId.CLOSED:
        return not is_task_archived(task, today)

    if column in (ColumnId.IN_WORK, ColumnId.NOT_STARTED):
        if task.deadline is None:
            return True
        current_month = month_start(today)
        if task.start_date is not None and task.start_date >= current_month:
            return True
        if months_ahead is None:
            months_ahead = get_settings().finance.months_ahead_for_tasks
        return task.deadline <= add_months(current_month, months_ahead, day=1)

    return True


def visible_tasks(tasks: Iterable[Task], today: date, months_ahead: Optional[int] = None) -> list[Task]:
    return [task for task in tasks if is_task_visible(task, today, months_ahead)]
