"""
Finance Core - Source Package

The calculation core of a personal finance dashboard: task payments,
additional income and extra-work shifts merged into one event stream,
monthly summaries over that stream, and credit amortization schedules.

DESIGN PRINCIPLES:
1. Pure calculations over snapshots; the host owns storage
2. Fail early, fail visibly
3. No silent corrections
4. Every state-changing step must be auditable
5. Money is Decimal, rounded to cents where it is shown
"""

from finance_core import models
from finance_core.aggregation import aggregate
from finance_core.audit import AuditLogger, InMemoryAuditSink
from finance_core.credits import apply_payment, build_schedule, rebuild_schedule, revert_payment
from finance_core.events import normalize
from finance_core.extra_work import paid_amount, paid_percent, payment_status, total_amount
from finance_core.orchestrator import (
    CreditFlow,
    DashboardFlow,
    ExtraWorkFlow,
    create_app_components,
)

__version__ = "1.0.0"

__all__ = [
    # Engines
    "aggregate",
    "apply_payment",
    "build_schedule",
    "normalize",
    "paid_amount",
    "paid_percent",
    "payment_status",
    "rebuild_schedule",
    "revert_payment",
    "total_amount",
    # Flows and audit
    "AuditLogger",
    "CreditFlow",
    "DashboardFlow",
    "ExtraWorkFlow",
    "InMemoryAuditSink",
    "create_app_components",
    "models",
]
