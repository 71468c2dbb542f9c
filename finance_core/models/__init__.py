"""
Data Models Package

All records handed to the core by the host, and everything the core hands
back, are Pydantic models defined here.
"""

from finance_core.models.task import (
    ColumnId,
    SubTask,
    Task,
    TaskExpenseEntry,
    TaskPausedRange,
    TaskPayment,
)
from finance_core.models.records import (
    ExtraWork,
    ExtraWorkPayment,
    Income,
    MonthlyExpense,
    MonthlyFinancialGoal,
    PaymentMode,
    ShiftPaymentStatus,
)
from finance_core.models.credit import (
    Credit,
    CreditMonthTotals,
    CreditParams,
    CreditScheduleItem,
    CreditStatus,
    CreditSummary,
    ScheduleType,
    UpcomingPayment,
)
from finance_core.models.summary import (
    DaySummary,
    EventKind,
    EventOrigin,
    EventSource,
    FinanceSummary,
    MonetaryEvent,
    MonthSummary,
)
from finance_core.models.snapshot import FinanceSnapshot
from finance_core.models.validation import ValidationIssue, ValidationResult
from finance_core.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Task models
    "ColumnId",
    "SubTask",
    "Task",
    "TaskExpenseEntry",
    "TaskPausedRange",
    "TaskPayment",
    # Income / extra work / goals
    "ExtraWork",
    "ExtraWorkPayment",
    "Income",
    "MonthlyExpense",
    "MonthlyFinancialGoal",
    "PaymentMode",
    "ShiftPaymentStatus",
    # Credit models
    "Credit",
    "CreditMonthTotals",
    "CreditParams",
    "CreditScheduleItem",
    "CreditStatus",
    "CreditSummary",
    "ScheduleType",
    "UpcomingPayment",
    # Events and summaries
    "DaySummary",
    "EventKind",
    "EventOrigin",
    "EventSource",
    "FinanceSummary",
    "MonetaryEvent",
    "MonthSummary",
    "FinanceSnapshot",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
