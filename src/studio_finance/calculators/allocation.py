"""Proportional allocation of promise-level payments across quotes."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import Hashable, Mapping, TypeVar

from studio_finance.calculators.money import CENT, ZERO

K = TypeVar("K", bound=Hashable)


def allocate_proportionally(
    amount: Decimal,
    weights: Mapping[K, Decimal],
) -> dict[K, Decimal]:
    """Split an amount across keys by weight, exactly to the cent.

    Rules:
    - Each share is amount * weight / total_weight, truncated to cents.
    - Leftover cents go one at a time to the largest truncation remainders;
      equal remainders are resolved by the string form of the key.
    - If total weight is zero every key gets an equal share.

    The result never depends on the iteration order of ``weights`` and the
    shares always sum to ``amount``.
    """
    if not weights:
        return {}

    keys = sorted(weights, key=str)
    total_weight = sum((weights[k] for k in keys), ZERO)

    if total_weight > 0:
        raw = {k: amount * weights[k] / total_weight for k in keys}
    else:
        count = Decimal(len(keys))
        raw = {k: amount / count for k in keys}

    shares = {k: raw[k].quantize(CENT, rounding=ROUND_DOWN) for k in keys}
    leftover = amount - sum(shares.values(), ZERO)
    cents_left = int((leftover / CENT).to_integral_value())

    if cents_left > 0:
        by_remainder = sorted(keys, key=lambda k: (-(raw[k] - shares[k]), str(k)))
        for k in by_remainder[:cents_left]:
            shares[k] += CENT

    return shares


def allocate_promise_payment(
    amount: Decimal,
    quote_totals: Mapping[K, Decimal],
) -> dict[K, Decimal]:
    """Attribute a payment that references only a promise to its quotes.

    Weighted by each approved quote's effective total; equal split when the
    promise's approved value is zero.
    """
    return allocate_proportionally(amount, quote_totals)
