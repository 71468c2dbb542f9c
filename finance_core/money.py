"""Decimal money helpers."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert a loosely-typed amount to Decimal. Missing or garbage values count as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def round_to_cents(value) -> Decimal:
    """Round half-up to two decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate_percent: Decimal) -> Decimal:
    """`amount * rate / 100` without intermediate rounding."""
    return amount * rate_percent / HUNDRED


def clamp_percent(rate) -> Decimal:
    """Tax rate limited to 0..100; missing or negative rates mean no tax."""
    if rate is None or rate <= ZERO:
        return ZERO
    return min(rate, HUNDRED)
