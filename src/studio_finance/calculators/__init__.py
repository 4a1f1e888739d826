"""Pure money calculations used by the services."""

from studio_finance.calculators.allocation import (
    allocate_promise_payment,
    allocate_proportionally,
)
from studio_finance.calculators.billing import BillingType, effective_quantity
from studio_finance.calculators.item_merge import MergedItem, merge_items
from studio_finance.calculators.money import (
    CENT,
    ZERO,
    money_sum,
    round_to_cents,
    to_money,
    within_tolerance,
)

__all__ = [
    "BillingType",
    "CENT",
    "MergedItem",
    "ZERO",
    "allocate_promise_payment",
    "allocate_proportionally",
    "effective_quantity",
    "merge_items",
    "money_sum",
    "round_to_cents",
    "to_money",
    "within_tolerance",
]
