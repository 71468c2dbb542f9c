"""
Shared model plumbing.

DESIGN DECISION: Records arrive from the host as JSON snapshots written by a
JavaScript front end (camelCase keys, dates as strings, amounts as numbers,
`null` where a list is empty). Every snapshot model therefore:
1. Accepts camelCase and snake_case keys
2. Ignores keys it does not know about
3. Is frozen, so no calculation can modify the caller's data
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from finance_core.dates import parse_date_only
from finance_core.money import to_decimal


def _lenient_amount(value):
    """Blank or unreadable amounts are treated as absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        amount = Decimal(text)
    except ArithmeticError:
        return None
    return amount if amount.is_finite() else None


def _none_as_empty(value):
    return [] if value is None else value


# Calendar date that degrades to None instead of failing validation
LenientDate = Annotated[Optional[date], BeforeValidator(parse_date_only)]

# Optional amount that degrades to None instead of failing validation
LenientAmount = Annotated[Optional[Decimal], BeforeValidator(_lenient_amount)]

# Required amount; unreadable values count as zero
Amount = Annotated[Decimal, BeforeValidator(to_decimal)]

# Older exports spell the tax rate key out in full
TAX_RATE_ALIASES = AliasChoices("tax_rate", "taxRate", "taxRatePercent", "tax_rate_percent")

# Lists persisted as null by older versions of the host
NullableList = BeforeValidator(_none_as_empty)


class SnapshotModel(BaseModel):
    """Base class for immutable host records."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )
