"""
Two-Stage Validation Pipeline

DESIGN DECISION: User input for credits and extra work is validated in two
distinct stages before it reaches the engines:

STAGE 1 - SCHEMA VALIDATION:
- Required values present and readable
- Ranges the engines depend on (positive amount, term, rate >= 0, ...)
- Any error here blocks the operation

STAGE 2 - SEMANTIC VALIDATION:
- Plausibility checks (absurd rates, decades-old start dates, ...)
- Warnings only; the user may proceed after reviewing them

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the user to correct.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from finance_core.config import FinanceSettings, get_settings
from finance_core.credits.engine import monthly_rate
from finance_core.credits.planning import calculate_annuity_payment
from finance_core.extra_work.calculator import paid_amount
from finance_core.models.credit import CreditParams, ScheduleType
from finance_core.models.records import ExtraWork
from finance_core.models.validation import ValidationIssue, ValidationResult
from finance_core.money import ZERO

# First-month interest above this share of the payment barely amortizes the debt
_INTEREST_SHARE_WARNING = Decimal("0.9")


def _schema_errors(error: ValidationError) -> list[ValidationIssue]:
    """Turn a pydantic ValidationError into schema issues."""
    issues = []
    for detail in error.errors():
        field = str(detail["loc"][0]) if detail.get("loc") else "input"
        issues.append(ValidationIssue(
            field=field,
            issue_type="missing" if detail.get("type") == "missing" else "invalid_format",
            message=f"{field}: {detail.get('msg', 'invalid value')}",
            severity="error",
        ))
    return issues


def _has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


class _TwoStageValidator(ABC):
    """Shared pipeline: parse, schema checks, then semantic checks."""

    subject = "input"
    model: type[BaseModel]

    def __init__(self, settings: Optional[FinanceSettings] = None):
        self._settings = settings or get_settings().finance

    def _parse(self, data) -> tuple[Optional[BaseModel], list[ValidationIssue]]:
        if isinstance(data, self.model):
            return data, []
        try:
            return self.model.model_validate(data), []
        except ValidationError as e:
            return None, _schema_errors(e)

    @abstractmethod
    def _validate_schema(self, parsed, raw) -> list[ValidationIssue]:
        """Stage 1: blocking checks on the parsed input."""

    @abstractmethod
    def _validate_semantic(self, parsed, today: date) -> list[ValidationIssue]:
        """Stage 2: plausibility warnings; runs only when stage 1 passed."""

    def validate(self, data, today: Optional[date] = None) -> ValidationResult:
        """
        Run the full two-stage pipeline.

        Args:
            data: A model instance or the raw mapping from a form
            today: Reference date for date plausibility checks

        Returns:
            ValidationResult with all issues found
        """
        today = today or date.today()
        parsed, issues = self._parse(data)
        if parsed is not None:
            issues.extend(self._validate_schema(parsed, data))
        schema_valid = not _has_errors(issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_issues = self._validate_semantic(parsed, today)
            issues.extend(semantic_issues)
            semantic_valid = not _has_errors(semantic_issues)

        return ValidationResult(
            subject=self.subject,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        return user_friendly_summary(result)


# =============================================================================
# CREDITS
# =============================================================================

class CreditParamsValidator(_TwoStageValidator):
    """Validates credit form input before a schedule is built or rebuilt."""

    subject = "credit_params"
    model = CreditParams

    def _validate_schema(
        self,
        params: CreditParams,
        raw: Union[CreditParams, Mapping[str, Any]],
    ) -> list[ValidationIssue]:
        issues = []

        if params.amount <= ZERO:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Credit amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount borrowed",
            ))

        if params.annual_rate_percent < ZERO:
            issues.append(ValidationIssue(
                field="annual_rate_percent",
                issue_type="invalid_value",
                message="Interest rate cannot be negative",
                severity="error",
                suggested_fix="Enter 0 for an interest-free loan",
            ))

        if params.term_months <= 0:
            issues.append(ValidationIssue(
                field="term_months",
                issue_type="invalid_value",
                message="Term must be at least one month",
                severity="error",
            ))

        # The model drops unusable payment days; report them instead of ignoring them
        if isinstance(raw, Mapping):
            raw_day = raw.get("payment_day", raw.get("paymentDay"))
            if raw_day not in (None, "") and params.payment_day is None:
                issues.append(ValidationIssue(
                    field="payment_day",
                    issue_type="invalid_value",
                    message=f"Payment day must be between 1 and 31 (got {raw_day!r})",
                    severity="error",
                    suggested_fix="Leave empty to pay on the start date's day",
                ))

        return issues

    def _validate_semantic(self, params: CreditParams, today: date) -> list[ValidationIssue]:
        issues = []
        settings = self._settings

        max_rate = Decimal(str(settings.max_reasonable_rate_percent))
        if params.annual_rate_percent > max_rate:
            issues.append(ValidationIssue(
                field="annual_rate_percent",
                issue_type="suspicious_value",
                message=f"Interest rate ({params.annual_rate_percent}%) seems unusually high",
                severity="warning",
                suggested_fix="Check that the annual rate, not the total overpayment, was entered",
            ))

        if params.term_months > settings.max_term_months:
            issues.append(ValidationIssue(
                field="term_months",
                issue_type="suspicious_value",
                message=f"Term ({params.term_months} months) seems unusually long",
                severity="warning",
                suggested_fix="Check that the term is in months, not days",
            ))

        stale_year = today.year - settings.stale_start_date_years
        if params.start_date.year < stale_year:
            issues.append(ValidationIssue(
                field="start_date",
                issue_type="suspicious_date",
                message=f"Start date ({params.start_date}) seems unusually old",
                severity="warning",
                suggested_fix="Please verify the start date",
            ))

        if params.schedule_type == ScheduleType.ANNUITY:
            payment = calculate_annuity_payment(
                params.amount, params.annual_rate_percent, params.term_months
            )
            first_interest = params.amount * monthly_rate(params.annual_rate_percent)
            if payment and first_interest >= payment * _INTEREST_SHARE_WARNING:
                issues.append(ValidationIssue(
                    field="term_months",
                    issue_type="suspicious_value",
                    message=(
                        f"Monthly payment ({payment}) barely exceeds the interest "
                        f"({first_interest:.2f}); the debt would shrink very slowly"
                    ),
                    severity="warning",
                    suggested_fix="Consider a shorter term",
                ))

        return issues


# =============================================================================
# EXTRA WORK
# =============================================================================

class ExtraWorkValidator(_TwoStageValidator):
    """Validates shift input before it is recorded."""

    subject = "extra_work"
    model = ExtraWork

    def _validate_schema(
        self,
        work: ExtraWork,
        raw: Union[ExtraWork, Mapping[str, Any]],
    ) -> list[ValidationIssue]:
        issues = []

        if not work.work_dates:
            issues.append(ValidationIssue(
                field="work_dates",
                issue_type="missing",
                message="At least one valid work date is required",
                severity="error",
                suggested_fix="Pick the days you worked in the calendar",
            ))
        elif isinstance(raw, Mapping):
            raw_dates = raw.get("work_dates", raw.get("workDates")) or []
            if len(set(map(str, raw_dates))) > len(work.work_dates):
                issues.append(ValidationIssue(
                    field="work_dates",
                    issue_type="invalid_format",
                    message="Some work dates could not be read and were skipped",
                    severity="warning",
                    suggested_fix="Use the YYYY-MM-DD format",
                ))

        if work.daily_rate <= ZERO:
            issues.append(ValidationIssue(
                field="daily_rate",
                issue_type="invalid_value",
                message="Daily rate must be greater than zero",
                severity="error",
            ))

        if work.weekend_rate is not None and work.weekend_rate < ZERO:
            issues.append(ValidationIssue(
                field="weekend_rate",
                issue_type="invalid_value",
                message="Weekend rate cannot be negative",
                severity="error",
                suggested_fix="Leave empty to use the daily rate on weekends",
            ))

        for index, payment in enumerate(work.payments):
            if payment.date is None:
                issues.append(ValidationIssue(
                    field=f"payments.{index}.date",
                    issue_type="missing",
                    message=f"Payment {index + 1} has no date",
                    severity="error",
                ))
            if payment.amount <= ZERO:
                issues.append(ValidationIssue(
                    field=f"payments.{index}.amount",
                    issue_type="invalid_value",
                    message=f"Payment {index + 1} must have a positive amount",
                    severity="error",
                ))

        return issues

    def _validate_semantic(self, work: ExtraWork, today: date) -> list[ValidationIssue]:
        issues = []

        if work.weekend_rate is not None and work.weekend_rate < work.daily_rate:
            issues.append(ValidationIssue(
                field="weekend_rate",
                issue_type="suspicious_value",
                message=(
                    f"Weekend rate ({work.weekend_rate}) is lower than the "
                    f"daily rate ({work.daily_rate})"
                ),
                severity="warning",
                suggested_fix="Check that the rates were not swapped",
            ))

        payments_total = sum((payment.amount for payment in work.payments), ZERO)
        if payments_total > work.total_amount:
            issues.append(ValidationIssue(
                field="payments",
                issue_type="inconsistent",
                message=(
                    f"Payments ({payments_total}) exceed the shift total ({work.total_amount})"
                ),
                severity="warning",
                suggested_fix="Over-payment is allowed, but please verify the amounts",
            ))
        elif paid_amount(work) > work.total_amount:
            issues.append(ValidationIssue(
                field="payments",
                issue_type="inconsistent",
                message="Paid amount exceeds the shift total",
                severity="warning",
            ))

        return issues


# =============================================================================
# PRESENTATION
# =============================================================================

def user_friendly_summary(result: ValidationResult) -> str:
    """
    Render a validation result as a form message.

    This is what we show to non-technical users.
    """
    if result.is_valid and not result.warnings:
        return "✅ All checks passed."

    lines = []

    if not result.schema_valid:
        lines.append("❌ Please correct the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("⚠️ Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    lines.append("")
    if result.is_valid:
        lines.append("You can still proceed, but please review carefully.")
    else:
        lines.append("Please fix the issues above before continuing.")

    return "\n".join(lines)
