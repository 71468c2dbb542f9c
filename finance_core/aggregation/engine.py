"""
Day/Month Aggregator ("Finance Engine")

Turns tasks, income records, shift payments and credits into the
dashboard's per-day profit map and month totals.

DESIGN DECISIONS:
1. Everything is computed from one merged event stream. Task money comes
   from the normalizer, so the day map and the month totals cannot
   disagree about which payments count.
2. Totals are never rounded here. Rounding is a display concern.
3. The aggregator is total: odd data flows through the arithmetic and is
   never rejected. Validation happens before data is saved, not here.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from finance_core.credits.planning import credit_payments_in_month
from finance_core.dates import date_key, in_month, month_days, month_key
from finance_core.events.normalizer import normalize_all
from finance_core.events.tasks import task_payment_info
from finance_core.models.credit import Credit
from finance_core.models.records import ExtraWork, Income, MonthlyFinancialGoal
from finance_core.models.summary import (
    DaySummary,
    EventKind,
    EventOrigin,
    EventSource,
    FinanceSummary,
    MonetaryEvent,
    MonthSummary,
)
from finance_core.models.task import Task
from finance_core.money import ZERO, clamp_percent

logger = structlog.get_logger(__name__)


def income_events(incomes: Iterable[Income]) -> list[MonetaryEvent]:
    """One event per income record; records without a readable date produce none."""
    return [
        MonetaryEvent(
            amount=income.amount,
            date=income.date,
            tax_rate_percent=clamp_percent(income.tax_rate),
            kind=EventKind.INCOME,
            source=EventSource.INCOME,
            source_id=income.id,
            origin=EventOrigin.INCOME,
            label=income.title or None,
        )
        for income in incomes
        if income.date is not None
    ]


def extra_work_events(extra_works: Iterable[ExtraWork]) -> list[MonetaryEvent]:
    """One untaxed event per paid, dated shift payment."""
    return [
        MonetaryEvent(
            amount=payment.amount,
            date=payment.date,
            kind=EventKind.INCOME,
            source=EventSource.EXTRA_WORK,
            source_id=work.id,
            origin=EventOrigin.EXTRA_WORK_PAYMENT,
        )
        for work in extra_works
        for payment in work.payments
        if payment.paid and payment.date is not None
    ]


def collect_events(
    tasks: Iterable[Task],
    incomes: Iterable[Income] = (),
    extra_works: Iterable[ExtraWork] = (),
) -> list[MonetaryEvent]:
    """The merged event stream, ordered by date."""
    events = normalize_all(tasks) + income_events(incomes) + extra_work_events(extra_works)
    events.sort(key=lambda event: event.date)
    return events


def _task_due_date(task: Task) -> Optional[date]:
    return task.deadline or task.start_date


def expected_income(tasks: Iterable[Task], year: int, month: int) -> Decimal:
    """Unpaid remainder of every task due in the month."""
    expected = ZERO
    for task in tasks:
        if not task.amount or task.amount <= ZERO:
            continue
        if not in_month(_task_due_date(task), year, month):
            continue
        remainder = task.amount - task_payment_info(task).total_paid
        if remainder > ZERO:
            expected += remainder
    return expected


def planned_expenses(goals: Iterable[MonthlyFinancialGoal], key: str) -> Decimal:
    return sum(
        (expense.amount for goal in goals if goal.month_key == key for expense in goal.expenses),
        ZERO,
    )


def aggregate(
    tasks: Iterable[Task],
    incomes: Iterable[Income] = (),
    extra_works: Iterable[ExtraWork] = (),
    credits: Iterable[Credit] = (),
    monthly_goals: Iterable[MonthlyFinancialGoal] = (),
    now: Union[date, datetime, None] = None,
) -> FinanceSummary:
    """
    Finance summary for the calendar month containing `now`.

    Every day of the month is present in `by_day`, zeroed when idle.
    Loan payments are reported in `credit_payments_planned` /
    `credit_payments_paid` and never touch expenses or profit.
    """
    if now is None:
        now = date.today()
    elif isinstance(now, datetime):
        now = now.date()
    year, month = now.year, now.month
    tasks = list(tasks)

    by_day = {
        date_key(day): DaySummary(date_key=date_key(day), day=day)
        for day in month_days(year, month)
    }

    income_from_sites = ZERO
    additional_income = ZERO
    extra_work_income = ZERO
    total_taxes = ZERO
    total_expenses = ZERO
    contributing_tasks: set[str] = set()
    event_count = 0

    for event in collect_events(tasks, incomes, extra_works):
        if not in_month(event.date, year, month):
            continue
        event_count += 1
        row = by_day[date_key(event.date)]

        if event.kind == EventKind.EXPENSE:
            row.expenses += event.amount
            row.profit -= event.amount
            total_expenses += event.amount
            continue

        tax = event.tax_amount
        row.taxes += tax
        row.profit += event.amount - tax
        total_taxes += tax

        if event.source == EventSource.EXTRA_WORK:
            row.extra_work_income += event.amount
            row.has_additional_income = True
            extra_work_income += event.amount
        elif event.source == EventSource.INCOME:
            row.income += event.amount
            row.has_additional_income = True
            additional_income += event.amount
        else:
            row.income += event.amount
            income_from_sites += event.amount
            if event.source_id is not None:
                contributing_tasks.add(event.source_id)

    total_income = income_from_sites + additional_income + extra_work_income
    average_check = (
        income_from_sites / len(contributing_tasks) if contributing_tasks else ZERO
    )
    loans = credit_payments_in_month(credits, year, month)

    summary = MonthSummary(
        year=year,
        month=month,
        income_from_sites=income_from_sites,
        additional_income=additional_income,
        extra_work_income=extra_work_income,
        total_income=total_income,
        total_taxes=total_taxes,
        total_expenses=total_expenses,
        profit=total_income - total_taxes - total_expenses,
        average_check=average_check,
        expected=expected_income(tasks, year, month),
        credit_payments_planned=loans.planned,
        credit_payments_paid=loans.paid,
        planned_expenses=planned_expenses(monthly_goals, month_key(now)),
    )
    logger.debug("finance_summary_computed", month=summary.month_key, events=event_count)
    return FinanceSummary(month=summary, by_day=by_day)
