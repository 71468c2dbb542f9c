"""
Tests for task money normalization and derived task views.
"""

import pytest
from datetime import date
from decimal import Decimal

from finance_core.events import (
    is_task_active_in_month,
    is_task_archived,
    is_task_visible,
    normalize,
    normalize_all,
    task_active_ranges,
    task_payment_info,
    visible_tasks,
)
from finance_core.models import ColumnId, EventKind, EventOrigin, Task


def make_task(**kwargs) -> Task:
    data = {"id": "t1", "title": "Site"}
    data.update(kwargs)
    return Task.model_validate(data)


class TestNormalize:
    """Tests for the task -> event rules."""

    def test_paid_payment_with_tax(self):
        """Test a single paid payment taxed at 6%."""
        task = make_task(
            amount=5000,
            payments=[{"amount": 5000, "paid": True, "date": "2024-03-15", "taxRatePercent": 6}],
        )
        events = normalize(task)

        assert len(events) == 1
        event = events[0]
        assert event.kind == EventKind.INCOME
        assert event.origin == EventOrigin.PAYMENT
        assert event.amount == Decimal("5000")
        assert event.date == date(2024, 3, 15)
        assert event.tax_amount == Decimal("300")
        assert event.net_amount == Decimal("4700")

    def test_dated_subtasks_are_income(self):
        """Test that subtasks with amount and date become income; others are skipped."""
        task = make_task(subtasks=[
            {"id": "s1", "title": "Design", "amount": 1000, "date": "2024-03-10"},
            {"id": "s2", "title": "No date", "amount": 500},
            {"id": "s3", "title": "No amount", "date": "2024-03-11"},
        ])
        events = normalize(task)

        assert [(e.origin, e.amount) for e in events] == [(EventOrigin.SUBTASK, Decimal("1000"))]
        assert events[0].label == "Design"

    def test_unpaid_payment_is_not_income(self):
        """Test that a planned payment produces no event and blocks the fallback."""
        task = make_task(
            amount=5000,
            updatedAt="2024-03-20",
            payments=[{"amount": 5000, "paid": False, "date": "2024-03-15"}],
        )
        assert normalize(task) == []

    def test_fallback_on_updated_at(self):
        """Test that an unitemized budget becomes one event on updated_at."""
        task = make_task(amount=3000, taxRate=10, updatedAt="2024-03-20", deadline="2024-03-31")
        events = normalize(task)

        assert len(events) == 1
        assert events[0].origin == EventOrigin.FALLBACK
        assert events[0].date == date(2024, 3, 20)
        assert events[0].tax_amount == Decimal("300")

    def test_fallback_on_deadline(self):
        """Test that the fallback uses the deadline when updated_at is missing."""
        task = make_task(amount=3000, deadline="2024-03-31")
        assert normalize(task)[0].date == date(2024, 3, 31)

    def test_fallback_without_dates(self):
        """Test that an undated budget produces nothing."""
        assert normalize(make_task(amount=3000)) == []

    def test_fallback_skipped_after_earlier_expense(self):
        """Test that an expense dated before the fallback date suppresses it."""
        task = make_task(
            amount=3000,
            updatedAt="2024-03-20",
            expensesEntries=[{"id": "e1", "amount": 200, "date": "2024-03-01"}],
        )
        events = normalize(task)

        assert [e.kind for e in events] == [EventKind.EXPENSE]
        assert events[0].tax_amount == Decimal("0")

    def test_expense_falls_back_to_created_at(self):
        """Test expense dating: own date, else creation date, else dropped."""
        task = make_task(
            createdAt="2024-02-01",
            expensesEntries=[
                {"id": "e1", "amount": 100},
                {"id": "e2", "amount": 50, "date": "2024-02-10"},
            ],
        )
        events = normalize(task)
        assert [(e.date, e.amount) for e in events] == [
            (date(2024, 2, 1), Decimal("100")),
            (date(2024, 2, 10), Decimal("50")),
        ]

        undated = make_task(expensesEntries=[{"id": "e1", "amount": 100}])
        assert normalize(undated) == []

    def test_payment_rate_overrides_task_rate(self):
        """Test that a payment's own rate, even zero, wins over the task's."""
        task = make_task(
            taxRate=6,
            payments=[
                {"amount": 1000, "paid": True, "date": "2024-03-01", "taxRate": 0},
                {"amount": 1000, "paid": True, "date": "2024-03-02"},
            ],
        )
        taxes = [e.tax_amount for e in normalize(task)]
        assert taxes == [Decimal("0"), Decimal("60")]

    def test_tax_rate_is_clamped(self):
        """Test that rates are limited to 0..100."""
        task = make_task(payments=[
            {"amount": 1000, "paid": True, "date": "2024-03-01", "taxRate": 150},
            {"amount": 1000, "paid": True, "date": "2024-03-02", "taxRate": -5},
        ])
        rates = [e.tax_rate_percent for e in normalize(task)]
        assert rates == [Decimal("100"), Decimal("0")]

    def test_no_double_counting(self):
        """Test that itemized income never triggers the fallback as well."""
        task = make_task(
            amount=10000,
            updatedAt="2024-03-25",
            subtasks=[{"id": "s1", "amount": 4000, "date": "2024-03-05"}],
            payments=[{"amount": 6000, "paid": True, "date": "2024-03-12"}],
        )
        events = normalize(task)

        assert EventOrigin.FALLBACK not in [e.origin for e in events]
        assert sum(e.amount for e in events) == Decimal("10000")

    def test_events_sorted_by_date(self):
        """Test that normalize_all returns one date-ordered stream."""
        tasks = [
            make_task(id="a", payments=[{"amount": 1, "paid": True, "date": "2024-03-20"}]),
            make_task(id="b", payments=[{"amount": 2, "paid": True, "date": "2024-03-01"}]),
        ]
        events = normalize_all(tasks)
        assert [e.source_id for e in events] == ["b", "a"]

    def test_normalize_is_idempotent(self):
        """Test that normalizing twice yields identical events."""
        task = make_task(amount=3000, updatedAt="2024-03-20")
        assert normalize(task) == normalize(task)


class TestPaymentInfo:
    """Tests for task payment progress."""

    def test_partial_payment(self):
        """Test a task paid in part."""
        task = make_task(
            amount=5000,
            payments=[
                {"amount": 3000, "paid": True, "date": "2024-03-10"},
                {"amount": 2000, "paid": False, "date": "2024-04-10"},
            ],
        )
        info = task_payment_info(task)
        assert info.total_paid == Decimal("3000")
        assert not info.is_fully_paid
        assert info.last_payment_date == date(2024, 3, 10)

    def test_fallback_counts_as_paid(self):
        """Test that the fallback event pays the whole budget."""
        info = task_payment_info(make_task(amount=3000, updatedAt="2024-03-20"))
        assert info.total_paid == Decimal("3000")
        assert info.is_fully_paid

    def test_no_budget_is_never_fully_paid(self):
        """Test that a task without a budget is not considered paid."""
        task = make_task(subtasks=[{"id": "s1", "amount": 100, "date": "2024-03-01"}])
        assert not task_payment_info(task).is_fully_paid


class TestActivity:
    """Tests for activity ranges."""

    def test_pause_splits_range(self):
        """Test that a pause is cut out of the task's life."""
        task = make_task(
            startDate="2024-01-01",
            deadline="2024-01-31",
            pausedRanges=[{"from": "2024-01-10", "to": "2024-01-20"}],
        )
        assert task_active_ranges(task) == [
            (date(2024, 1, 1), date(2024, 1, 9)),
            (date(2024, 1, 21), date(2024, 1, 31)),
        ]

    def test_task_inactive_in_paused_month(self):
        """Test that a month spent entirely on pause does not count."""
        task = make_task(
            startDate="2024-01-15",
            deadline="2024-03-15",
            pausedRanges=[{"from": "2024-02-01", "to": "2024-02-29"}],
        )
        assert is_task_active_in_month(task, 2024, 1)
        assert not is_task_active_in_month(task, 2024, 2)
        assert is_task_active_in_month(task, 2024, 3)

    def test_task_without_dates_has_no_activity(self):
        """Test that an undated task is never active."""
        assert task_active_ranges(make_task()) == []


class TestVisibility:
    """Tests for board visibility and the archive."""

    def closed_paid_task(self, **kwargs) -> Task:
        data = dict(
            columnId="closed",
            amount=1000,
            payments=[{"amount": 1000, "paid": True, "date": "2024-02-10"}],
        )
        data.update(kwargs)
        return make_task(**data)

    def test_closed_paid_task_archived_after_month_ends(self):
        """Test that archiving waits for the payment month to end."""
        task = self.closed_paid_task()
        assert not is_task_archived(task, date(2024, 2, 20))
        assert is_task_archived(task, date(2024, 3, 5))
        assert not is_task_visible(task, date(2024, 3, 5))

    def test_paused_task_never_archived(self):
        """Test that a paused task stays on the board."""
        task = self.closed_paid_task(columnId="paused", pausedFromColumnId="closed")
        assert not is_task_archived(task, date(2024, 6, 1))
        assert is_task_visible(task, date(2024, 6, 1))

    def test_unpaid_closed_task_stays_visible(self):
        """Test that a closed task with money outstanding is not archived."""
        task = self.closed_paid_task(amount=2000)
        assert is_task_visible(task, date(2024, 6, 1))

    @pytest.mark.parametrize("kwargs, visible", [
        ({}, True),
        ({"deadline": "2024-06-01"}, True),
        ({"deadline": "2024-09-01"}, False),
        ({"deadline": "2024-09-01", "startDate": "2024-04-01"}, True),
        ({"deadline": "2024-09-01", "startDate": "2024-01-01"}, False),
    ])
    def test_far_planned_tasks_hidden(self, kwargs, visible):
        """Test the months-ahead window for in-work tasks."""
        task = make_task(columnId="inwork", **kwargs)
        assert is_task_visible(task, date(2024, 3, 10), months_ahead=3) is visible

    def test_other_columns_visible(self):
        """Test that completed tasks are always shown."""
        task = make_task(columnId="completed", deadline="2030-01-01")
        assert is_task_visible(task, date(2024, 3, 10))

    def test_visible_tasks_filters(self):
        """Test filtering a task list."""
        tasks = [
            make_task(id="keep", columnId="notstarted"),
            make_task(id="far", columnId="notstarted", deadline="2025-01-01"),
        ]
        result = visible_tasks(tasks, date(2024, 3, 10), months_ahead=3)
        assert [task.id for task in result] == ["keep"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
