"""Validation package."""

from finance_core.validation.validator import (
    CreditParamsValidator,
    ExtraWorkValidator,
    user_friendly_summary,
)

__all__ = [
    "CreditParamsValidator",
    "ExtraWorkValidator",
    "user_friendly_summary",
]
