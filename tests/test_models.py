"""
Tests for the Finance Core models

Test strategy:
1. Unit tests for individual components (models, engines, validators)
2. Integration tests for flows (with an in-memory audit sink)
3. Host snapshots are fed in as the JSON the front end writes (camelCase)
"""

import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from finance_core.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    ColumnId,
    Credit,
    CreditParams,
    ExtraWork,
    FinanceSnapshot,
    Income,
    MonthlyFinancialGoal,
    Task,
    TaskPayment,
    ValidationIssue,
    ValidationResult,
)


class TestTaskModels:
    """Tests for task snapshot parsing."""

    def test_task_from_camel_case_json(self):
        """Test that a task persisted by the front end parses."""
        task = Task.model_validate({
            "id": "t1",
            "title": "Landing page",
            "columnId": "inwork",
            "startDate": "2024-03-01T00:00:00.000Z",
            "deadline": "2024-03-20",
            "taxRate": 6,
            "payments": None,
            "unknownKey": "ignored",
        })
        assert task.column_id == ColumnId.IN_WORK
        assert task.start_date == date(2024, 3, 1)
        assert task.deadline == date(2024, 3, 20)
        assert task.tax_rate == Decimal("6")
        assert task.payments == []

    def test_tax_rate_percent_key_accepted(self):
        """Test that the long tax rate key is read as the tax rate."""
        payment = TaskPayment.model_validate({"amount": 5000, "taxRatePercent": 6})
        assert payment.tax_rate == Decimal("6")

    def test_unreadable_values_degrade_to_none(self):
        """Test that garbage amounts and dates become None instead of failing."""
        task = Task.model_validate({
            "id": "t1",
            "amount": "abc",
            "deadline": "not a date",
            "updatedAt": "",
        })
        assert task.amount is None
        assert task.deadline is None
        assert task.updated_at is None

    def test_task_is_frozen(self):
        """Test that calculations cannot modify the caller's data."""
        task = Task(id="t1", amount=Decimal("100"))
        with pytest.raises(ValidationError):
            task.amount = Decimal("200")

    def test_payment_value_from_qty_and_price(self):
        """Test that a payment without an amount is qty x price."""
        payment = TaskPayment(qty=Decimal("2"), price=Decimal("150"))
        assert payment.value == Decimal("300")

    def test_payment_explicit_amount_wins(self):
        """Test that an explicit amount overrides qty x price."""
        payment = TaskPayment(amount=Decimal("500"), qty=Decimal("2"), price=Decimal("150"))
        assert payment.value == Decimal("500")

    def test_paused_range_aliases(self):
        """Test that paused ranges are read from `from` / `to` keys."""
        task = Task.model_validate({
            "id": "t1",
            "pausedRanges": [{"from": "2024-01-01", "to": "2024-01-10"}],
        })
        assert task.paused_ranges[0].start == date(2024, 1, 1)
        assert task.paused_ranges[0].end == date(2024, 1, 10)

    def test_effective_column_of_paused_task(self):
        """Test that a paused task counts in the column it was paused from."""
        task = Task(
            id="t1",
            column_id=ColumnId.PAUSED,
            paused_from_column_id=ColumnId.CLOSED,
        )
        assert task.effective_column == ColumnId.CLOSED
        assert Task(id="t2", column_id=ColumnId.PAUSED).effective_column == ColumnId.PAUSED


class TestRecordModels:
    """Tests for incomes, shifts and goals."""

    def test_income_amount_defaults_to_zero(self):
        """Test that an unreadable income amount counts as zero."""
        income = Income.model_validate({"amount": None, "date": "2024-03-15"})
        assert income.amount == Decimal("0")
        assert income.date == date(2024, 3, 15)

    def test_extra_work_dates_normalized(self):
        """Test that work dates are parsed, de-duplicated and sorted."""
        work = ExtraWork.model_validate({
            "workDates": ["2024-03-04T00:00:00.000Z", "2024-03-02", "2024-03-04", "garbage"],
            "dailyRate": 2000,
        })
        assert work.work_dates == [date(2024, 3, 2), date(2024, 3, 4)]

    def test_extra_work_total_is_derived(self):
        """Test that total_amount comes from dates and rates, never from input."""
        work = ExtraWork.model_validate({
            "workDates": ["2024-03-02", "2024-03-04"],
            "dailyRate": 2000,
            "weekendRate": 3000,
            "totalAmount": 1,
        })
        assert work.total_amount == Decimal("5000")
        assert work.model_dump()["total_amount"] == Decimal("5000")

    def test_monthly_goal_requires_month_key(self):
        """Test that a malformed month key is rejected."""
        with pytest.raises(ValidationError):
            MonthlyFinancialGoal(month_key="March 2024")

    def test_monthly_goal_null_expenses(self):
        """Test that null expense lists from older hosts are accepted."""
        goal = MonthlyFinancialGoal.model_validate({"monthKey": "2024-03", "expenses": None})
        assert goal.expenses == []
        assert goal.manual_profit is None


class TestCreditModels:
    """Tests for credit models."""

    def test_payment_day_from_full_date(self):
        """Test that a legacy payment date is reduced to its day."""
        credit = Credit.model_validate({"id": "c1", "paymentDate": "2024-12-15"})
        assert credit.payment_day == 15

    @pytest.mark.parametrize("raw, expected", [
        (10, 10),
        ("21", 21),
        (0, None),
        (32, None),
        ("", None),
        ("soon", None),
    ])
    def test_payment_day_parsing(self, raw, expected):
        """Test the accepted payment day shapes."""
        credit = Credit.model_validate({"id": "c1", "paymentDay": raw})
        assert credit.payment_day == expected

    def test_credit_params_parse_strings(self):
        """Test that form strings are parsed into credit parameters."""
        params = CreditParams.model_validate({
            "amount": "120000",
            "annualRatePercent": "12",
            "termMonths": 12,
            "startDate": "2024-01-15",
        })
        assert params.amount == Decimal("120000")
        assert params.annual_rate_percent == Decimal("12")
        assert params.payment_day is None

    def test_snapshot_parses_everything(self):
        """Test that a full snapshot parses from JSON with nulls."""
        snapshot = FinanceSnapshot.model_validate({
            "tasks": [{"id": "t1"}],
            "incomes": None,
            "extraWorks": [{"workDates": ["2024-03-02"], "dailyRate": 100}],
            "credits": [{"id": "c1", "schedule": None}],
        })
        assert len(snapshot.tasks) == 1
        assert snapshot.incomes == []
        assert snapshot.extra_works[0].total_amount == Decimal("100")
        assert snapshot.credits[0].schedule == []
        assert snapshot.monthly_goals == []


class TestValidationModels:
    """Tests for validation result models."""

    def test_validation_issue_severity(self):
        """Test that only known severities are accepted."""
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")

    def test_validation_result_counts_errors(self):
        """Test error counting and per-field lookup."""
        result = ValidationResult(
            subject="credit_params",
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(field="amount", issue_type="invalid_value", message="a", severity="error"),
                ValidationIssue(field="term_months", issue_type="suspicious_value", message="b", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert [issue.message for issue in result.issues_for("amount")] == ["a"]


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation with defaults."""
        event = AuditEvent(
            event_type=AuditEventType.SCHEDULE_BUILT,
            description="Test event",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_builder_schedule_built(self):
        """Test the schedule-built event shape."""
        event = AuditEventBuilder.schedule_built(
            credit_id="c1",
            schedule_type="annuity",
            term_months=12,
        )
        assert event.event_type == AuditEventType.SCHEDULE_BUILT
        assert event.entity_type == "credit"
        assert event.entity_id == "c1"

    def test_audit_builder_summary_is_debug(self):
        """Test that read-only summaries are audited at debug severity."""
        event = AuditEventBuilder.summary_computed(
            month_key="2024-03",
            profit="4700",
            active_days=1,
        )
        assert event.severity == AuditSeverity.DEBUG
        assert event.entity_id == "2024-03"

    def test_audit_to_log_dict(self):
        """Test conversion to a structured logging dict."""
        event = AuditEventBuilder.validation_failed(
            subject="credit_params",
            entity_id="c1",
            issues=[{"field": "amount", "type": "invalid_value", "message": "bad"}],
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "validation_failed"
        assert log_dict["entity_id"] == "c1"
        assert log_dict["correlation_id"] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
