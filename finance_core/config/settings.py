"""
Configuration Management for the Finance Core

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable thresholds live here.
The engines themselves are pure functions; only the validators, reports and
logging read settings, so a host can change reminder windows or the tax-year
boundary without touching calculation code.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FinanceSettings(BaseSettings):
    """Business thresholds used by validators, reminders and reports."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Reminders and board visibility
    upcoming_payment_days: int = Field(
        default=7,
        ge=0,
        le=366,
        description="How many days ahead credit payment reminders look"
    )
    months_ahead_for_tasks: int = Field(
        default=3,
        ge=0,
        description="Planned tasks with a deadline further out are hidden from the board"
    )

    # Tax year boundary (default: 3 December)
    tax_year_start_month: int = Field(
        default=12,
        ge=1,
        le=12,
        description="Month in which a new tax year starts"
    )
    tax_year_start_day: int = Field(
        default=3,
        ge=1,
        le=28,
        description="Day of month on which a new tax year starts"
    )

    # Sanity thresholds (warnings only, never hard failures)
    max_reasonable_rate_percent: float = Field(
        default=60.0,
        ge=0.0,
        description="Annual rates above this look like input mistakes"
    )
    max_term_months: int = Field(
        default=360,
        ge=1,
        description="Loan terms longer than this look like input mistakes"
    )
    stale_start_date_years: int = Field(
        default=30,
        ge=1,
        description="Credit start dates older than this many years look suspicious"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON (False gives a human-friendly console format)"
    )

    @field_validator('level')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept any case, store upper-case."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.strip().upper()
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def finance(self) -> FinanceSettings:
        return FinanceSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus `<name>_error`
    entries for the sections that failed. Useful for host startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("finance", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
