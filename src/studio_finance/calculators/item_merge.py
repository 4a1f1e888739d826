"""Merging of payroll line items for consolidated payments."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol
from uuid import UUID


class ItemLike(Protocol):
    quote_item_id: UUID | None
    name: str
    cost: Decimal
    quantity: Decimal


@dataclass
class MergedItem:
    """A consolidated line item before persistence."""

    name: str
    cost: Decimal
    quantity: Decimal
    quote_item_id: UUID | None = None


def merge_items(items: Iterable[ItemLike]) -> list[MergedItem]:
    """Combine line items that reference the same quoted service.

    Items sharing a quote_item_id collapse into one entry with cost and
    quantity summed; items without a service reference are kept as they are.
    Output follows first-seen order.
    """
    merged: list[MergedItem] = []
    by_service: dict[UUID, MergedItem] = {}

    for item in items:
        if item.quote_item_id is None:
            merged.append(
                MergedItem(name=item.name, cost=item.cost, quantity=item.quantity)
            )
            continue

        existing = by_service.get(item.quote_item_id)
        if existing is None:
            existing = MergedItem(
                name=item.name,
                cost=item.cost,
                quantity=item.quantity,
                quote_item_id=item.quote_item_id,
            )
            by_service[item.quote_item_id] = existing
            merged.append(existing)
        else:
            existing.cost += item.cost
            existing.quantity += item.quantity

    return merged
