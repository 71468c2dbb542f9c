"""
Monetary Event Normalizer

DESIGN DECISION: A task's money can be recorded three different ways
(dated subtasks, itemized payments, or just a budget). Every consumer used
to re-implement the "which one applies" logic and they drifted apart. The
normalizer is now the ONLY place that reads task money; aggregation,
reports and payment info all work on its output.

Rules, in priority order:
1. Subtask with an amount and a date -> income on that date
2. Paid payment with a date -> income on that date
3. Expense entry -> expense on its date (or the task's creation date)
4. No dated payments and no dated subtasks, budget > 0 -> one synthetic
   "fallback" income on updated_at (or deadline), unless an expense entry
   already sits strictly earlier than that date

CRITICAL: The fallback never fires alongside itemized income, so the same
money cannot be counted twice.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from finance_core.models.summary import EventKind, EventOrigin, EventSource, MonetaryEvent
from finance_core.models.task import Task, TaskPayment
from finance_core.money import ZERO, clamp_percent

logger = structlog.get_logger(__name__)


def payment_amount(payment: TaskPayment) -> Decimal:
    """Explicit amount, else qty x price."""
    return payment.value


def _task_event(
    task: Task,
    amount: Decimal,
    on: date,
    kind: EventKind,
    origin: EventOrigin,
    tax_rate: Optional[Decimal] = None,
    label: Optional[str] = None,
) -> MonetaryEvent:
    return MonetaryEvent(
        amount=amount,
        date=on,
        tax_rate_percent=clamp_percent(tax_rate) if kind == EventKind.INCOME else ZERO,
        kind=kind,
        source=EventSource.TASK,
        source_id=task.id,
        origin=origin,
        label=label or task.title or None,
    )


def _has_dated_income_records(task: Task) -> bool:
    """Any payment or subtask with a readable date, paid or not."""
    return (
        any(payment.date is not None for payment in task.payments)
        or any(subtask.date is not None for subtask in task.subtasks)
    )


def normalize(task: Task) -> list[MonetaryEvent]:
    """
    Convert a task into its dated income and expense events, ordered by date.

    Never raises on bad data: unreadable dates were already turned into
    None by the model, and records without a usable date are skipped or
    fall through to the fallback rule.
    """
    events: list[MonetaryEvent] = []

    # Rule 1: subtasks with amount + date
    for subtask in task.subtasks:
        if not subtask.amount or subtask.date is None:
            continue
        events.append(_task_event(
            task,
            subtask.amount,
            subtask.date,
            EventKind.INCOME,
            EventOrigin.SUBTASK,
            tax_rate=task.tax_rate,
            label=subtask.title,
        ))

    # Rule 2: paid payments with a date
    for payment in task.payments:
        if not payment.paid or payment.date is None:
            continue
        rate = payment.tax_rate if payment.tax_rate is not None else task.tax_rate
        events.append(_task_event(
            task,
            payment_amount(payment),
            payment.date,
            EventKind.INCOME,
            EventOrigin.PAYMENT,
            tax_rate=rate,
            label=payment.title,
        ))

    # Rule 3: expense entries
    for entry in task.expenses_entries:
        when = entry.date or task.created_at
        if when is None:
            logger.debug("expense_entry_dropped", task_id=task.id, entry_id=entry.id)
            continue
        events.append(_task_event(
            task,
            entry.amount or ZERO,
            when,
            EventKind.EXPENSE,
            EventOrigin.EXPENSE,
            label=entry.title,
        ))

    # Rule 4: fallback for tasks with no itemized income
    budget = task.amount or ZERO
    if budget > ZERO and not _has_dated_income_records(task):
        when = task.updated_at or task.deadline
        if when is None:
            logger.debug("fallback_income_undated", task_id=task.id)
        elif any(event.date < when for event in events):
            logger.debug("fallback_income_skipped", task_id=task.id, fallback_date=when.isoformat())
        else:
            events.append(_task_event(
                task,
                budget,
                when,
                EventKind.INCOME,
                EventOrigin.FALLBACK,
                tax_rate=task.tax_rate,
            ))

    events.sort(key=lambda event: event.date)
    return events


def normalize_all(tasks) -> list[MonetaryEvent]:
    """Events of every task, ordered by date (stable within a task)."""
    events: list[MonetaryEvent] = []
    for task in tasks:
        events.extend(normalize(task))
    events.sort(key=lambda event: event.date)
    return events
