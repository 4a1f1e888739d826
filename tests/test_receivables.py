"""Tests for receivables resolution."""

from decimal import Decimal

import pytest

from studio_finance.services.receivables import ReceivablesResolver

pytestmark = pytest.mark.asyncio


class TestReceivables:
    """Outstanding balance per approved quote."""

    async def test_end_to_end_scenario(
        self, session, studio, make_promise, make_quote, make_payment
    ):
        """900 effective, 400 against the quote, 200 against the promise."""
        promise = await make_promise()
        quote = await make_quote(promise, "1000", discount="100")
        await make_payment("400", quote=quote)
        await make_payment("200", promise=promise)

        summary = await ReceivablesResolver(session).resolve(studio.id)

        assert summary.total == Decimal("300.00")
        assert len(summary.items) == 1
        item = summary.items[0]
        assert item.quote_id == quote.id
        assert item.outstanding == Decimal("300.00")
        assert item.attributed == Decimal("600.00")
        assert item.concept == "Photo package - Wedding Garcia"

    async def test_promise_payment_split_by_value(
        self, session, studio, make_promise, make_quote, make_payment
    ):
        promise = await make_promise()
        small = await make_quote(promise, "100", name="Album")
        large = await make_quote(promise, "300", name="Video")
        await make_payment("200", promise=promise)

        summary = await ReceivablesResolver(session).resolve(studio.id)
        outstanding = {item.quote_id: item.outstanding for item in summary.items}

        assert outstanding[small.id] == Decimal("50.00")
        assert outstanding[large.id] == Decimal("150.00")
        assert summary.total == Decimal("200.00")
        assert summary.attributed_total == Decimal("200.00")

    async def test_fully_paid_quote_not_listed(
        self, session, studio, make_promise, make_quote, make_payment
    ):
        promise = await make_promise()
        paid = await make_quote(promise, "500")
        open_quote = await make_quote(promise, "250", name="Prints")
        await make_payment("600", quote=paid)

        summary = await ReceivablesResolver(session).resolve(studio.id)

        assert [item.quote_id for item in summary.items] == [open_quote.id]
        assert summary.total == Decimal("250.00")
        assert summary.quote_count == 2

    async def test_unsettled_and_unapproved_ignored(
        self, session, studio, make_promise, make_quote, make_payment
    ):
        promise = await make_promise()
        quote = await make_quote(promise, "400", status="aprobada")
        draft = await make_quote(promise, "999", status="draft")
        await make_payment("100", quote=quote, status="pending")
        await make_payment("100", quote=draft)

        summary = await ReceivablesResolver(session).resolve(studio.id)

        assert summary.total == Decimal("400.00")
        assert summary.quote_count == 1

    async def test_zero_value_promise_splits_equally(
        self, session, studio, make_promise, make_quote, make_payment
    ):
        promise = await make_promise()
        await make_quote(promise, "0", name="Free session")
        await make_quote(promise, "0", name="Free prints")
        await make_payment("10", promise=promise)

        summary = await ReceivablesResolver(session).resolve(studio.id)

        assert summary.total == Decimal("0.00")
        assert summary.attributed_total == Decimal("10.00")

    async def test_no_approved_quotes(self, session, studio):
        summary = await ReceivablesResolver(session).resolve(studio.id)
        assert summary.items == []
        assert summary.total == Decimal("0")
