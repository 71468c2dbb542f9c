"""Multi-month reports, task archive and derived taxes."""

from finance_core.reports.monthly import (
    MonthKey,
    MonthlyReportRow,
    TaskForMonth,
    archived_task_months,
    archived_tasks_for_month,
    calculate_monthly_data,
    last_months,
    month_keys_between,
    tasks_for_month,
)
from finance_core.reports.taxes import (
    DerivedTax,
    derive_taxes,
    tax_year_key,
    taxes_for_year,
    total_taxes,
    unpaid_taxes,
)

__all__ = [
    "MonthKey",
    "MonthlyReportRow",
    "TaskForMonth",
    "archived_task_months",
    "archived_tasks_for_month",
    "calculate_monthly_data",
    "last_months",
    "month_keys_between",
    "tasks_for_month",
    "DerivedTax",
    "derive_taxes",
    "tax_year_key",
    "taxes_for_year",
    "total_taxes",
    "unpaid_taxes",
]
