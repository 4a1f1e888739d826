"""Per-period financial summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.calculators.billing import effective_quantity
from studio_finance.calculators.money import ZERO, round_to_cents
from studio_finance.models import APPROVED_QUOTE_STATUSES, Promise, Quote
from studio_finance.services.ledger_query import LedgerQueryService
from studio_finance.services.receivables import ReceivablesResolver
from studio_finance.services.windows import DateWindow

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ProductionBreakdown:
    """Cost structure of the approved quotes created in a window."""

    revenue: Decimal
    production_cost: Decimal
    operating_expense: Decimal
    margin: Decimal
    margin_percent: Decimal


@dataclass(frozen=True)
class FinancialSummary:
    """KPIs for one studio and window.

    expense = operating_expense + payroll_expense, profit = income - expense.
    receivables and payables are balances as of now, not window sums.
    """

    studio_id: UUID
    window: DateWindow
    income: Decimal
    expense: Decimal
    operating_expense: Decimal
    payroll_expense: Decimal
    profit: Decimal
    receivables: Decimal
    payables: Decimal
    production: ProductionBreakdown


class KpiAggregator:
    """Combines the ledger queries, receivables and payroll dedup."""

    def __init__(self, session: AsyncSession, legacy_match_seconds: int | None = None):
        self.session = session
        self.ledger = LedgerQueryService(session, legacy_match_seconds)
        self.receivables = ReceivablesResolver(session)

    async def compute(self, studio_id: UUID, window: DateWindow) -> FinancialSummary:
        income = await self.ledger.sum_income(studio_id, window)
        operating = await self.ledger.sum_expenses(studio_id, window)
        payroll = await self.ledger.sum_paid_payroll(studio_id, window)
        receivables = await self.receivables.resolve(studio_id)
        payables = await self.ledger.sum_pending_payroll(studio_id)
        production = await self.production_breakdown(studio_id, window)

        expense = round_to_cents(operating + payroll)
        summary = FinancialSummary(
            studio_id=studio_id,
            window=window,
            income=income,
            expense=expense,
            operating_expense=operating,
            payroll_expense=payroll,
            profit=round_to_cents(income - expense),
            receivables=receivables.total,
            payables=payables,
            production=production,
        )
        logger.debug(
            "KPIs for studio %s %s..%s: income %s, expense %s, profit %s",
            studio_id,
            window.start,
            window.end,
            summary.income,
            summary.expense,
            summary.profit,
        )
        return summary

    async def production_breakdown(
        self, studio_id: UUID, window: DateWindow
    ) -> ProductionBreakdown:
        """Revenue against item cost/expense snapshots of approved quotes.

        HOUR items scale with the event duration: the quote's own
        event_duration_hours, else the promise's duration_hours.
        """
        result = await self.session.execute(
            select(Quote)
            .where(
                Quote.studio_id == studio_id,
                Quote.status.in_(APPROVED_QUOTE_STATUSES),
                Quote.created_at >= window.lower,
                Quote.created_at < window.upper,
            )
            .order_by(Quote.id)
        )
        quotes = list(result.scalars().all())

        durations: dict[UUID, Decimal | None] = {}
        promise_ids = {q.promise_id for q in quotes if q.event_duration_hours is None}
        if promise_ids:
            promise_result = await self.session.execute(
                select(Promise.id, Promise.duration_hours).where(Promise.id.in_(promise_ids))
            )
            durations = {row.id: row.duration_hours for row in promise_result}

        revenue = cost = expense = ZERO
        for quote in quotes:
            hours = quote.event_duration_hours
            if hours is None:
                hours = durations.get(quote.promise_id)
            revenue += quote.effective_total
            for item in quote.items:
                quantity = effective_quantity(item.billing_type, item.quantity, hours)
                cost += (item.cost_snapshot or ZERO) * quantity
                expense += (item.expense_snapshot or ZERO) * quantity

        revenue = round_to_cents(revenue)
        cost = round_to_cents(cost)
        expense = round_to_cents(expense)
        margin = revenue - cost - expense
        margin_percent = (
            round_to_cents(margin * HUNDRED / revenue) if revenue > 0 else ZERO
        )
        return ProductionBreakdown(
            revenue=revenue,
            production_cost=cost,
            operating_expense=expense,
            margin=margin,
            margin_percent=margin_percent,
        )
