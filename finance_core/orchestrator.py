"""
Main Orchestrator for the Finance Core

This module ties together the engines, the validators and the audit log,
and defines the end-to-end flows the host calls:
1. Credits (form input -> validate -> build/rebuild schedule -> audit)
2. Payments (mark a schedule row paid or unpaid -> audit)
3. Extra work (form input -> validate -> create/update shift -> audit)
4. Dashboard (snapshot -> month summary, visible tasks, monthly report)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No schedule is built from input that failed validation
- Engines stay pure; only this layer writes audit events
- Every state-changing step is audited

The host persists whatever the flows return. Nothing here performs I/O.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union
from uuid import UUID

from finance_core.aggregation import aggregate
from finance_core.audit import AuditLogger, AuditSinkInterface, create_correlation_id
from finance_core.credits import (
    InvalidCreditParamsError,
    apply_payment,
    build_schedule,
    rebuild_schedule,
    recalculate_current_balance,
    revert_payment,
    upcoming_payments,
)
from finance_core.events import visible_tasks
from finance_core.extra_work import create_extra_work, update_extra_work
from finance_core.models import (
    Credit,
    CreditParams,
    ExtraWork,
    ExtraWorkPayment,
    FinanceSnapshot,
    FinanceSummary,
    PaymentMode,
    Task,
    UpcomingPayment,
    ValidationResult,
)
from finance_core.reports import MonthKey, MonthlyReportRow, calculate_monthly_data, last_months
from finance_core.validation import CreditParamsValidator, ExtraWorkValidator

CreditInput = Union[CreditParams, Mapping[str, Any]]


def _issue_dicts(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
    ]


def _credit_fields(params: CreditParams) -> dict:
    return {
        "amount": params.amount,
        "interest_rate": params.annual_rate_percent,
        "term_months": params.term_months,
        "start_date": params.start_date,
        "payment_day": params.payment_day,
        "schedule_type": params.schedule_type,
    }


class CreditFlow:
    """
    Orchestrates credit schedules and their payments.

    Flow:
    1. Validate -> Two-stage validation of the form input
    2. Build -> Full schedule for a new credit, or a rebuild that keeps paid rows
    3. Pay / undo -> One row at a time

    Returned credits are new objects; the caller's credit is never mutated.
    """

    def __init__(
        self,
        validator: Optional[CreditParamsValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._validator = validator or CreditParamsValidator()
        self._audit_logger = audit_logger

    def _validate(
        self,
        credit: Credit,
        data: CreditInput,
        today: Optional[date],
        correlation_id: UUID,
    ) -> tuple[Optional[CreditParams], ValidationResult, str]:
        result = self._validator.validate(data, today=today)
        message = self._validator.get_user_friendly_summary(result)

        if not result.is_valid:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(
                    subject=result.subject,
                    entity_id=credit.id,
                    issues=_issue_dicts(result),
                    correlation_id=correlation_id,
                )
            return None, result, message

        params = data if isinstance(data, CreditParams) else CreditParams.model_validate(data)
        return params, result, message

    def _reject(self, credit: Credit, error: InvalidCreditParamsError, correlation_id: UUID) -> None:
        if self._audit_logger:
            self._audit_logger.log_schedule_rejected(
                credit_id=credit.id,
                field=error.field,
                reason=str(error),
                correlation_id=correlation_id,
            )

    def create_schedule(
        self,
        credit: Credit,
        data: CreditInput,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Credit], ValidationResult, str]:
        """
        Validate the input and attach a freshly built schedule to the credit.

        Returns:
            (credit, validation_result, message)

        If validation fails, credit is None and the message lists what to fix.
        Warnings do not block; they are in the message for the user to review.
        """
        correlation_id = correlation_id or create_correlation_id()

        params, result, message = self._validate(credit, data, today, correlation_id)
        if params is None:
            return None, result, message

        try:
            schedule = build_schedule(params, credit_id=credit.id)
        except InvalidCreditParamsError as e:
            self._reject(credit, e, correlation_id)
            raise

        update = _credit_fields(params)
        update.update({
            "schedule": schedule,
            "current_balance": params.amount,
            "monthly_payment": schedule[0].planned_payment if schedule else None,
        })
        built = credit.model_copy(update=update)

        if self._audit_logger:
            self._audit_logger.log_schedule_built(
                credit_id=credit.id,
                schedule_type=params.schedule_type.value,
                term_months=params.term_months,
                correlation_id=correlation_id,
            )

        return built, result, message

    def rebuild(
        self,
        credit: Credit,
        data: CreditInput,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Credit], ValidationResult, str]:
        """
        Validate changed terms and regenerate the unpaid part of the schedule.

        Paid rows are carried over untouched.

        Returns:
            (credit, validation_result, message)
        """
        correlation_id = correlation_id or create_correlation_id()

        params, result, message = self._validate(credit, data, today, correlation_id)
        if params is None:
            return None, result, message

        try:
            schedule = rebuild_schedule(credit, params)
        except InvalidCreditParamsError as e:
            self._reject(credit, e, correlation_id)
            raise

        kept = sum(1 for item in schedule if item.paid)
        regenerated = [item for item in schedule if not item.paid]

        update = _credit_fields(params)
        update.update({
            "schedule": schedule,
            "current_balance": (
                credit.current_balance
                if credit.current_balance is not None
                else recalculate_current_balance(credit)
            ),
            "monthly_payment": (
                regenerated[0].planned_payment if regenerated else credit.monthly_payment
            ),
        })
        rebuilt = credit.model_copy(update=update)

        if self._audit_logger:
            self._audit_logger.log_schedule_rebuilt(
                credit_id=credit.id,
                kept_paid_rows=kept,
                regenerated_rows=len(regenerated),
                correlation_id=correlation_id,
            )

        return rebuilt, result, message

    def pay(
        self,
        credit: Credit,
        item_id: str,
        amount: Optional[Decimal] = None,
        paid_at: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Credit:
        """
        Mark one schedule row paid.

        Raises:
            ScheduleItemNotFoundError: if the credit has no such row
        """
        updated = apply_payment(credit, item_id, paid_amount=amount, paid_at=paid_at)

        if updated is not credit and self._audit_logger:
            item = next(row for row in updated.schedule if row.id == item_id)
            self._audit_logger.log_payment_applied(
                credit_id=credit.id,
                item_id=item_id,
                amount=str(item.paid_amount),
                correlation_id=correlation_id or create_correlation_id(),
            )

        return updated

    def undo_payment(
        self,
        credit: Credit,
        item_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Credit:
        """
        Mark one schedule row unpaid again.

        Raises:
            ScheduleItemNotFoundError: if the credit has no such row
        """
        updated = revert_payment(credit, item_id)

        if updated is not credit and self._audit_logger:
            self._audit_logger.log_payment_reverted(
                credit_id=credit.id,
                item_id=item_id,
                correlation_id=correlation_id or create_correlation_id(),
            )

        return updated


class ExtraWorkFlow:
    """
    Orchestrates extra-work shifts.

    Input is validated before a record is created; edits are validated
    after payments have been re-derived, so the checks see the final record.
    """

    def __init__(
        self,
        validator: Optional[ExtraWorkValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._validator = validator or ExtraWorkValidator()
        self._audit_logger = audit_logger

    def _audit_failure(
        self,
        result: ValidationResult,
        work_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            self._audit_logger.log_validation_failed(
                subject=result.subject,
                entity_id=work_id,
                issues=_issue_dicts(result),
                correlation_id=correlation_id,
            )

    def create(
        self,
        work_dates: Iterable,
        daily_rate,
        weekend_rate=None,
        payment_mode: PaymentMode = PaymentMode.SINGLE,
        payment_date: Optional[date] = None,
        paid: bool = False,
        manual_payments: Optional[Iterable[ExtraWorkPayment]] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ExtraWork], ValidationResult, str]:
        """
        Validate shift input and create the record.

        Returns:
            (work, validation_result, message)

        If validation fails, work is None.
        """
        correlation_id = correlation_id or create_correlation_id()
        work_dates = list(work_dates)
        manual_payments = list(manual_payments or [])

        raw = {
            "work_dates": work_dates,
            "daily_rate": daily_rate,
            "weekend_rate": weekend_rate,
            "payment_mode": payment_mode,
            "payments": manual_payments if payment_mode == PaymentMode.MANUAL else [],
        }
        result = self._validator.validate(raw, today=today)
        message = self._validator.get_user_friendly_summary(result)

        if not result.is_valid:
            self._audit_failure(result, None, correlation_id)
            return None, result, message

        work = create_extra_work(
            work_dates,
            daily_rate,
            weekend_rate=weekend_rate,
            payment_mode=payment_mode,
            payment_date=payment_date,
            paid=paid,
            manual_payments=manual_payments,
            notes=notes,
            today=today,
        )

        if self._audit_logger:
            self._audit_logger.log_extra_work_created(
                work_id=work.id,
                days=len(work.work_dates),
                total_amount=str(work.total_amount),
                payment_mode=work.payment_mode.value,
                correlation_id=correlation_id,
            )

        return work, result, message

    def update(
        self,
        work: ExtraWork,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
        **changes,
    ) -> tuple[Optional[ExtraWork], ValidationResult, str]:
        """
        Apply an edit, then validate the edited record.

        Returns:
            (work, validation_result, message)

        Raises:
            TypeError: on fields that cannot be edited
        """
        correlation_id = correlation_id or create_correlation_id()

        updated = update_extra_work(work, today=today, **changes)
        result = self._validator.validate(updated, today=today)
        message = self._validator.get_user_friendly_summary(result)

        if not result.is_valid:
            self._audit_failure(result, work.id, correlation_id)
            return None, result, message

        if self._audit_logger:
            self._audit_logger.log_extra_work_updated(
                work_id=work.id,
                changed_fields=sorted(changes),
                correlation_id=correlation_id,
            )

        return updated, result, message


class DashboardFlow:
    """
    Read-only views over a snapshot of the host's records.

    Nothing here changes state; only the month summary is audited, at
    debug severity, so totals can be traced when they look wrong.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger

    def summary(
        self,
        snapshot: FinanceSnapshot,
        now: Union[date, datetime, None] = None,
        correlation_id: Optional[UUID] = None,
    ) -> FinanceSummary:
        """Finance summary for the month containing `now` (default: today)."""
        result = aggregate(
            snapshot.tasks,
            incomes=snapshot.incomes,
            extra_works=snapshot.extra_works,
            credits=snapshot.credits,
            monthly_goals=snapshot.monthly_goals,
            now=now,
        )

        if self._audit_logger:
            active_days = sum(
                1 for day in result.days
                if day.income or day.extra_work_income or day.expenses
            )
            self._audit_logger.log_summary_computed(
                month_key=result.month.month_key,
                profit=str(result.month.profit),
                active_days=active_days,
                correlation_id=correlation_id or create_correlation_id(),
            )

        return result

    def visible_tasks(
        self,
        tasks: Iterable[Task],
        today: Optional[date] = None,
    ) -> list[Task]:
        """Tasks the board should show today."""
        return visible_tasks(tasks, today or date.today())

    def monthly_report(
        self,
        snapshot: FinanceSnapshot,
        months: Optional[Iterable[MonthKey]] = None,
        count: int = 6,
        today: Optional[date] = None,
    ) -> list[MonthlyReportRow]:
        """Report rows for `months`, or for the last `count` months."""
        if months is None:
            months = last_months(count, today)
        return calculate_monthly_data(
            months,
            snapshot.tasks,
            incomes=snapshot.incomes,
            monthly_goals=snapshot.monthly_goals,
            extra_works=snapshot.extra_works,
        )

    def upcoming_payments(
        self,
        snapshot: FinanceSnapshot,
        today: Optional[date] = None,
    ) -> list[UpcomingPayment]:
        """Unpaid credit rows due within the reminder window."""
        return upcoming_payments(snapshot.credits, today=today)


def create_app_components(
    audit_sink: Optional[AuditSinkInterface] = None,
) -> tuple[CreditFlow, ExtraWorkFlow, DashboardFlow]:
    """
    Create all flows sharing one audit logger.

    Args:
        audit_sink: Where audit events are persisted. If None, events are
                    only written to the structured log.

    Returns:
        (credit_flow, extra_work_flow, dashboard_flow)
    """
    audit_logger = AuditLogger(audit_sink)

    credit_flow = CreditFlow(
        validator=CreditParamsValidator(),
        audit_logger=audit_logger,
    )
    extra_work_flow = ExtraWorkFlow(
        validator=ExtraWorkValidator(),
        audit_logger=audit_logger,
    )
    dashboard_flow = DashboardFlow(audit_logger=audit_logger)

    return credit_flow, extra_work_flow, dashboard_flow
