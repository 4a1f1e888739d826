"""Receivables resolution: outstanding balance per approved quote."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.calculators.allocation import allocate_promise_payment
from studio_finance.calculators.money import ZERO, money_sum, round_to_cents
from studio_finance.models import (
    APPROVED_QUOTE_STATUSES,
    SETTLED_PAYMENT_STATUSES,
    Payment,
    Promise,
    Quote,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteReceivable:
    """Outstanding balance of one approved quote."""

    quote_id: UUID
    promise_id: UUID
    concept: str
    effective_total: Decimal
    attributed: Decimal
    outstanding: Decimal
    created_at: datetime


@dataclass(frozen=True)
class ReceivablesSummary:
    """Receivables for a studio.

    ``items`` lists only quotes with something outstanding; ``total`` is the
    sum over every approved quote (fully paid ones contribute zero).
    """

    items: list[QuoteReceivable]
    total: Decimal
    promise_count: int
    quote_count: int
    approved_total: Decimal
    attributed_total: Decimal


class ReceivablesResolver:
    """Reconciles approved quote totals against settled payments.

    Attribution rules:
    - A payment referencing a quote counts 100% toward that quote.
    - A payment referencing only a promise is split across the promise's
      approved quotes, weighted by effective total (equal split when the
      approved value is zero).
    - A payment referencing a quote that is not approved is ignored.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, studio_id: UUID) -> ReceivablesSummary:
        quotes = await self._approved_quotes(studio_id)
        if not quotes:
            return ReceivablesSummary(
                items=[],
                total=ZERO,
                promise_count=0,
                quote_count=0,
                approved_total=ZERO,
                attributed_total=ZERO,
            )

        quotes_by_id = {q.id: q for q in quotes}
        quotes_by_promise: dict[UUID, list[Quote]] = defaultdict(list)
        for quote in quotes:
            quotes_by_promise[quote.promise_id].append(quote)

        promises = await self._promises(set(quotes_by_promise))
        payments = await self._settled_payments(set(quotes_by_id), set(quotes_by_promise))
        attributed = self.attribute_payments(payments, quotes_by_id, quotes_by_promise)

        items: list[QuoteReceivable] = []
        outstanding_total = ZERO
        for quote in quotes:
            paid = attributed.get(quote.id, ZERO)
            outstanding = max(ZERO, round_to_cents(quote.effective_total - paid))
            outstanding_total += outstanding
            if outstanding > 0:
                promise = promises.get(quote.promise_id)
                items.append(
                    QuoteReceivable(
                        quote_id=quote.id,
                        promise_id=quote.promise_id,
                        concept=self._concept(quote, promise),
                        effective_total=quote.effective_total,
                        attributed=paid,
                        outstanding=outstanding,
                        created_at=quote.created_at,
                    )
                )

        items.sort(key=lambda item: str(item.quote_id))
        items.sort(key=lambda item: item.created_at, reverse=True)

        summary = ReceivablesSummary(
            items=items,
            total=round_to_cents(outstanding_total),
            promise_count=len(quotes_by_promise),
            quote_count=len(quotes),
            approved_total=money_sum(q.effective_total for q in quotes),
            attributed_total=money_sum(attributed.values()),
        )
        logger.debug(
            "Receivables for studio %s: %d promises, %d quotes, total %s",
            studio_id,
            summary.promise_count,
            summary.quote_count,
            summary.total,
        )
        return summary

    @staticmethod
    def attribute_payments(
        payments: list[Payment],
        quotes_by_id: dict[UUID, Quote],
        quotes_by_promise: dict[UUID, list[Quote]],
    ) -> dict[UUID, Decimal]:
        """Attributed payment amount per quote id."""
        attributed: dict[UUID, Decimal] = defaultdict(lambda: ZERO)

        for payment in payments:
            if payment.quote_id is not None:
                if payment.quote_id in quotes_by_id:
                    attributed[payment.quote_id] += payment.amount
                else:
                    logger.debug(
                        "Payment %s references non-approved quote %s, ignored",
                        payment.id,
                        payment.quote_id,
                    )
                continue

            siblings = quotes_by_promise.get(payment.promise_id, [])
            if not siblings:
                continue
            shares = allocate_promise_payment(
                payment.amount, {q.id: q.effective_total for q in siblings}
            )
            for quote_id, share in shares.items():
                attributed[quote_id] += share

        return dict(attributed)

    async def _approved_quotes(self, studio_id: UUID) -> list[Quote]:
        result = await self.session.execute(
            select(Quote)
            .where(
                Quote.studio_id == studio_id,
                Quote.status.in_(APPROVED_QUOTE_STATUSES),
            )
            .order_by(Quote.id)
        )
        return list(result.scalars().all())

    async def _promises(self, promise_ids: set[UUID]) -> dict[UUID, Promise]:
        result = await self.session.execute(
            select(Promise).where(Promise.id.in_(promise_ids))
        )
        return {p.id: p for p in result.scalars().all()}

    async def _settled_payments(
        self, quote_ids: set[UUID], promise_ids: set[UUID]
    ) -> list[Payment]:
        result = await self.session.execute(
            select(Payment)
            .where(
                Payment.status.in_(SETTLED_PAYMENT_STATUSES),
                or_(Payment.quote_id.in_(quote_ids), Payment.promise_id.in_(promise_ids)),
            )
            .order_by(Payment.id)
        )
        return list(result.scalars().all())

    @staticmethod
    def _concept(quote: Quote, promise: Promise | None) -> str:
        owner = None
        if promise is not None:
            owner = promise.name or promise.contact_name
        return f"{quote.name or 'Quote'} - {owner or 'Promise'}"
