"""Exact decimal money helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
DEFAULT_TOLERANCE = Decimal("0.01")


def to_money(value: Decimal | int | str | float | None) -> Decimal:
    """Coerce a value to a Decimal rounded to cents.

    Floats go through str() so 0.1 becomes 0.10, not its binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(amounts: Iterable[Decimal | None]) -> Decimal:
    """Sum amounts exactly, treating None as zero."""
    total = ZERO
    for amount in amounts:
        if amount is not None:
            total += amount
    return round_to_cents(total)


def within_tolerance(
    left: Decimal, right: Decimal, tolerance: Decimal = DEFAULT_TOLERANCE
) -> bool:
    """Check two amounts differ by no more than the tolerance."""
    return abs(left - right) <= tolerance
