"""Decimal helpers for currency arithmetic."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: object) -> Decimal:
    """Coerce numbers and numeric strings to Decimal; blanks and junk become zero."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    try:
        # str() first so floats keep their printed value instead of binary noise.
        return Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal("0")


def round_money(value: object) -> Decimal:
    """Round to whole cents, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_rate(value: object) -> Decimal:
    """Round quantities, percentages and rates to four places, half away from zero."""
    return to_decimal(value).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    if upper < lower:
        upper = lower
    return max(lower, min(value, upper))


def percent_of(amount: object, percent: object) -> Decimal:
    """``amount * percent / 100`` rounded to cents."""
    return round_money(to_decimal(amount) * to_decimal(percent) / HUNDRED)
