"""Tests for merging payroll items into a consolidated payment."""

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from studio_finance.calculators.item_merge import merge_items


def item(name: str, cost: str, quantity: str = "1", quote_item_id=None):
    return SimpleNamespace(
        name=name,
        cost=Decimal(cost),
        quantity=Decimal(quantity),
        quote_item_id=quote_item_id,
    )


class TestMergeItems:
    """Items referencing the same quoted service collapse into one."""

    def test_same_service_is_summed(self):
        service = uuid4()
        merged = merge_items(
            [item("Photography", "500", "1", service), item("Photography", "300", "2", service)]
        )
        assert len(merged) == 1
        assert merged[0].cost == Decimal("800")
        assert merged[0].quantity == Decimal("3")
        assert merged[0].quote_item_id == service

    def test_unreferenced_items_stay_separate(self):
        merged = merge_items([item("Travel", "50"), item("Travel", "50")])
        assert [m.cost for m in merged] == [Decimal("50"), Decimal("50")]
        assert all(m.quote_item_id is None for m in merged)

    def test_first_seen_order(self):
        first, second = uuid4(), uuid4()
        merged = merge_items(
            [
                item("Video", "100", quote_item_id=second),
                item("Extra", "10"),
                item("Photo", "200", quote_item_id=first),
                item("Video", "100", quote_item_id=second),
            ]
        )
        assert [m.name for m in merged] == ["Video", "Extra", "Photo"]
        assert merged[0].cost == Decimal("200")

    def test_empty(self):
        assert merge_items([]) == []
