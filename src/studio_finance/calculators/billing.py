"""Billing-type aware quantities for quote items."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

ONE = Decimal("1")


class BillingType(str, Enum):
    """How a quote item is charged."""

    HOUR = "HOUR"
    SERVICE = "SERVICE"
    UNIT = "UNIT"


def effective_quantity(
    billing_type: str | BillingType | None,
    quantity: Decimal | None,
    duration_hours: Decimal | None = None,
) -> Decimal:
    """Quantity that multiplies an item's unit cost.

    HOUR items scale with the event duration (one hour when unknown);
    SERVICE and UNIT items use their quantity as is. Missing quantity counts
    as one.
    """
    qty = quantity if quantity is not None else ONE
    bt = BillingType(billing_type) if billing_type else BillingType.SERVICE

    if bt is BillingType.HOUR:
        hours = duration_hours if duration_hours is not None and duration_hours > 0 else ONE
        return qty * hours
    return qty
