"""Configuration package."""

from finance_core.config.settings import (
    FinanceSettings,
    LoggingSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "FinanceSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
