"""
Tests for the day/month aggregator.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from finance_core.aggregation import (
    aggregate,
    collect_events,
    expected_income,
    extra_work_events,
    income_events,
    planned_expenses,
)
from finance_core.credits import build_schedule
from finance_core.models import (
    Credit,
    CreditParams,
    EventSource,
    ExtraWork,
    Income,
    MonthlyFinancialGoal,
    Task,
)

NOW = date(2024, 3, 20)


def paid_task(task_id: str, amount, on: str, tax=None, **kwargs) -> Task:
    payment = {"amount": amount, "paid": True, "date": on}
    if tax is not None:
        payment["taxRatePercent"] = tax
    data = {"id": task_id, "amount": amount, "payments": [payment]}
    data.update(kwargs)
    return Task.model_validate(data)


def march_credit() -> Credit:
    params = CreditParams(
        amount=Decimal("120000"),
        annual_rate_percent=Decimal("12"),
        term_months=12,
        start_date=date(2024, 3, 10),
    )
    return Credit(id="c1", amount=params.amount, schedule=build_schedule(params, "c1"))


class TestAggregate:
    """Tests for the month summary and the day map."""

    def test_single_taxed_payment(self):
        """Test a 5000 payment taxed at 6% on 15 March."""
        summary = aggregate([paid_task("t1", 5000, "2024-03-15", tax=6)], now=NOW)

        day = summary.by_day["2024-03-15"]
        assert day.income == Decimal("5000")
        assert day.taxes == Decimal("300")
        assert day.profit == Decimal("4700")
        assert summary.month.income_from_sites == Decimal("5000")
        assert summary.month.total_taxes == Decimal("300")
        assert summary.month.profit == Decimal("4700")
        assert summary.month.average_check == Decimal("5000")

    def test_every_day_present(self):
        """Test that idle days are present with zeros."""
        summary = aggregate([], now=NOW)

        assert len(summary.by_day) == 31
        assert [d.day for d in summary.days][0] == date(2024, 3, 1)
        assert all(d.profit == 0 and d.income == 0 for d in summary.days)
        assert summary.month.month_key == "2024-03"

    def test_leap_february(self):
        """Test the day map of a leap-year February."""
        summary = aggregate([], now=date(2024, 2, 1))
        assert len(summary.by_day) == 29

    def test_income_records(self):
        """Test that income records are additional income, taxed at their own rate."""
        incomes = [
            Income(id="i1", amount=Decimal("1000"), date=date(2024, 3, 10), tax_rate=Decimal("10")),
            Income(id="i2", amount=Decimal("500")),
        ]
        summary = aggregate([], incomes=incomes, now=NOW)

        day = summary.by_day["2024-03-10"]
        assert day.has_additional_income
        assert day.income == Decimal("1000")
        assert day.taxes == Decimal("100")
        assert summary.month.additional_income == Decimal("1000")
        assert summary.month.income_from_sites == Decimal("0")

    def test_extra_work_payments(self):
        """Test that only paid, dated shift payments count, untaxed."""
        work = ExtraWork.model_validate({
            "workDates": ["2024-03-02", "2024-03-04"],
            "dailyRate": 2000,
            "paymentMode": "daily",
            "payments": [
                {"date": "2024-03-02", "amount": 2000, "paid": True},
                {"date": "2024-03-04", "amount": 2000, "paid": False},
            ],
        })
        summary = aggregate([], extra_works=[work], now=NOW)

        assert summary.by_day["2024-03-02"].extra_work_income == Decimal("2000")
        assert summary.by_day["2024-03-02"].has_additional_income
        assert summary.by_day["2024-03-04"].extra_work_income == Decimal("0")
        assert summary.month.extra_work_income == Decimal("2000")
        assert summary.month.total_taxes == Decimal("0")

    def test_expenses_reduce_profit(self):
        """Test that expense entries reduce the day's and month's profit."""
        task = Task.model_validate({
            "id": "t1",
            "expensesEntries": [{"id": "e1", "amount": 200, "date": "2024-03-05"}],
        })
        summary = aggregate([task], now=NOW)

        assert summary.by_day["2024-03-05"].expenses == Decimal("200")
        assert summary.by_day["2024-03-05"].profit == Decimal("-200")
        assert summary.month.total_expenses == Decimal("200")
        assert summary.month.profit == Decimal("-200")

    def test_profit_identity(self):
        """Test that profit is income minus taxes minus expenses, and matches the days."""
        tasks = [
            paid_task("t1", 5000, "2024-03-15", tax=6),
            Task.model_validate({
                "id": "t2",
                "expensesEntries": [{"id": "e1", "amount": 700, "date": "2024-03-07"}],
            }),
        ]
        incomes = [Income(amount=Decimal("1000"), date=date(2024, 3, 1), tax_rate=Decimal("13"))]
        summary = aggregate(tasks, incomes=incomes, now=NOW)
        month = summary.month

        assert month.total_income == month.income_from_sites + month.additional_income + month.extra_work_income
        assert month.profit == month.total_income - month.total_taxes - month.total_expenses
        assert sum(d.profit for d in summary.days) == month.profit

    def test_other_months_ignored(self):
        """Test that events outside the month do not count."""
        summary = aggregate([paid_task("t1", 5000, "2024-04-01")], now=NOW)
        assert summary.month.total_income == Decimal("0")

    def test_average_check(self):
        """Test task income divided by the tasks that produced it."""
        tasks = [
            paid_task("t1", 1000, "2024-03-01"),
            paid_task("t2", 3000, "2024-03-02"),
        ]
        assert aggregate(tasks, now=NOW).month.average_check == Decimal("2000")

    def test_loans_are_not_expenses(self):
        """Test that credit payments are reported apart from expenses and profit."""
        summary = aggregate([], credits=[march_credit()], now=NOW)

        assert summary.month.credit_payments_planned == Decimal("10661.85")
        assert summary.month.credit_payments_paid == Decimal("0")
        assert summary.month.total_expenses == Decimal("0")
        assert summary.month.profit == Decimal("0")

    def test_planned_expenses_from_goal(self):
        """Test that the month's goal contributes planned expenses only."""
        goals = [
            MonthlyFinancialGoal.model_validate({
                "monthKey": "2024-03",
                "expenses": [{"name": "Rent", "amount": 30000}, {"name": "Gym", "amount": 2000}],
            }),
            MonthlyFinancialGoal.model_validate({
                "monthKey": "2024-04",
                "expenses": [{"name": "Rent", "amount": 30000}],
            }),
        ]
        summary = aggregate([], monthly_goals=goals, now=NOW)

        assert summary.month.planned_expenses == Decimal("32000")
        assert summary.month.total_expenses == Decimal("0")
        assert planned_expenses(goals, "2024-05") == Decimal("0")

    def test_accepts_datetime(self):
        """Test that `now` may be a datetime."""
        summary = aggregate([], now=datetime(2024, 3, 20, 23, 59))
        assert summary.month.month == 3

    def test_idempotent(self):
        """Test that the same snapshot always gives the same summary."""
        tasks = [paid_task("t1", 5000, "2024-03-15", tax=6)]
        assert aggregate(tasks, now=NOW) == aggregate(tasks, now=NOW)


class TestExpected:
    """Tests for expected income."""

    def test_unpaid_remainder(self):
        """Test the unpaid part of a task due this month."""
        task = Task.model_validate({
            "id": "t1",
            "amount": 5000,
            "deadline": "2024-03-25",
            "payments": [{"amount": 3000, "paid": True, "date": "2024-03-10"}],
        })
        assert expected_income([task], 2024, 3) == Decimal("2000")
        assert aggregate([task], now=NOW).month.expected == Decimal("2000")

    def test_due_date_falls_back_to_start(self):
        """Test that a task without a deadline is due on its start date."""
        task = Task.model_validate({"id": "t1", "amount": 1000, "startDate": "2024-03-01"})
        assert expected_income([task], 2024, 3) == Decimal("1000")

    def test_other_months_and_paid_tasks(self):
        """Test that fully paid tasks and other months add nothing."""
        tasks = [
            Task.model_validate({"id": "t1", "amount": 1000, "deadline": "2024-04-10"}),
            paid_task("t2", 1000, "2024-03-02", deadline="2024-03-25"),
        ]
        assert expected_income(tasks, 2024, 3) == Decimal("0")


class TestEventStream:
    """Tests for the merged event stream."""

    def test_sources_merged_in_date_order(self):
        """Test that task, income and shift events come out as one ordered list."""
        work = ExtraWork.model_validate({
            "workDates": ["2024-03-02"],
            "dailyRate": 100,
            "payments": [{"date": "2024-03-02", "amount": 100, "paid": True}],
        })
        events = collect_events(
            [paid_task("t1", 500, "2024-03-15")],
            incomes=[Income(amount=Decimal("10"), date=date(2024, 3, 1))],
            extra_works=[work],
        )
        assert [e.source for e in events] == [
            EventSource.INCOME,
            EventSource.EXTRA_WORK,
            EventSource.TASK,
        ]

    def test_undated_income_skipped(self):
        """Test that income without a readable date produces no event."""
        assert income_events([Income(amount=Decimal("10"), date="garbage")]) == []

    def test_unpaid_shift_payment_skipped(self):
        """Test that planned shift payments produce no event."""
        work = ExtraWork.model_validate({
            "workDates": ["2024-03-02"],
            "dailyRate": 100,
            "payments": [{"date": "2024-03-02", "amount": 100, "paid": False}],
        })
        assert extra_work_events([work]) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
