"""Dashboard aggregation over the merged event stream."""

from finance_core.aggregation.engine import (
    aggregate,
    collect_events,
    expected_income,
    extra_work_events,
    income_events,
    planned_expenses,
)

__all__ = [
    "aggregate",
    "collect_events",
    "expected_income",
    "extra_work_events",
    "income_events",
    "planned_expenses",
]
