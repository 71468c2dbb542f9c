"""Task money normalization and derived task views."""

from finance_core.events.normalizer import normalize, normalize_all, payment_amount
from finance_core.events.tasks import (
    TaskPaymentInfo,
    effective_column,
    is_task_active_in_month,
    is_task_archived,
    is_task_visible,
    task_active_ranges,
    task_payment_info,
    visible_tasks,
)

__all__ = [
    "normalize",
    "normalize_all",
    "payment_amount",
    "TaskPaymentInfo",
    "effective_column",
    "is_task_active_in_month",
    "is_task_archived",
    "is_task_visible",
    "task_active_ranges",
    "task_payment_info",
    "visible_tasks",
]
