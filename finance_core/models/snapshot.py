"""
Finance Snapshot

Everything the dashboard needs in one object, as the host reads it from
its stores. Built with `FinanceSnapshot.model_validate(json_dict)`.
"""

from typing import Annotated

from pydantic import Field

from finance_core.models.base import NullableList, SnapshotModel
from finance_core.models.credit import Credit
from finance_core.models.records import ExtraWork, Income, MonthlyFinancialGoal
from finance_core.models.task import Task


class FinanceSnapshot(SnapshotModel):
    """Immutable copy of the host's money records for one computation."""

    tasks: Annotated[list[Task], NullableList] = Field(default_factory=list)
    incomes: Annotated[list[Income], NullableList] = Field(default_factory=list)
    extra_works: Annotated[list[ExtraWork], NullableList] = Field(default_factory=list)
    credits: Annotated[list[Credit], NullableList] = Field(default_factory=list)
    monthly_goals: Annotated[list[MonthlyFinancialGoal], NullableList] = Field(
        default_factory=list
    )
