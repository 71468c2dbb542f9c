"""Credit amortization schedules, payments and planning helpers."""

from finance_core.credits.engine import (
    CreditError,
    InvalidCreditParamsError,
    ScheduleItemNotFoundError,
    apply_payment,
    build_schedule,
    check_params,
    params_from_credit,
    rebuild_schedule,
    recalculate_current_balance,
    revert_payment,
)
from finance_core.credits.planning import (
    calculate_amount_from_payment,
    calculate_annuity_payment,
    calculate_term_from_payment,
    credit_payments_in_month,
    credit_summary,
    upcoming_payments,
)

__all__ = [
    "CreditError",
    "InvalidCreditParamsError",
    "ScheduleItemNotFoundError",
    "apply_payment",
    "build_schedule",
    "check_params",
    "params_from_credit",
    "rebuild_schedule",
    "recalculate_current_balance",
    "revert_payment",
    "calculate_amount_from_payment",
    "calculate_annuity_payment",
    "calculate_term_from_payment",
    "credit_payments_in_month",
    "credit_summary",
    "upcoming_payments",
]
