"""Read-only aggregation over payments, expenses and payroll for a window."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.calculators.money import money_sum
from studio_finance.config import get_settings
from studio_finance.models import (
    SETTLED_PAYMENT_STATUSES,
    CrewMember,
    Expense,
    Payment,
    PayrollRecord,
)
from studio_finance.services.payroll_dedup import DedupResult, deduplicate_payroll
from studio_finance.services.state_machine import PayrollStatus
from studio_finance.services.windows import DateWindow

logger = logging.getLogger(__name__)


def in_window(date_column: Any, created_column: Any, window: DateWindow) -> Any:
    """Window predicate on an authoritative date, falling back to created_at."""
    return or_(
        and_(date_column >= window.lower, date_column < window.upper),
        and_(
            date_column.is_(None),
            created_column >= window.lower,
            created_column < window.upper,
        ),
    )


@dataclass(frozen=True)
class Movement:
    """One line of the unified cash movement listing.

    Income is positive, payroll and operating expenses are negative.
    """

    id: UUID
    date: datetime
    source: str  # income, payroll, expense
    concept: str
    category: str
    amount: Decimal


@dataclass(frozen=True)
class PayablesSummary:
    """Pending payroll owed to crew."""

    items: list[PayrollRecord]
    total: Decimal


class LedgerQueryService:
    """Window queries that every KPI computation builds on.

    Date matching: a record is in the window when its authoritative date
    (payment_date for payments and payroll, date for expenses) is in range,
    or when that date is NULL and created_at is in range.
    """

    def __init__(self, session: AsyncSession, legacy_match_seconds: int | None = None):
        self.session = session
        if legacy_match_seconds is None:
            legacy_match_seconds = get_settings().legacy_match_seconds
        self.legacy_match_seconds = legacy_match_seconds

    # ------------------------------------------------------------------
    # Income
    # ------------------------------------------------------------------

    async def settled_payments(self, studio_id: UUID, window: DateWindow) -> list[Payment]:
        """Paid/completed payments in the window."""
        result = await self.session.execute(
            select(Payment)
            .where(
                Payment.studio_id == studio_id,
                Payment.status.in_(SETTLED_PAYMENT_STATUSES),
                in_window(Payment.payment_date, Payment.created_at, window),
            )
            .order_by(Payment.id)
        )
        return list(result.scalars().all())

    async def sum_income(self, studio_id: UUID, window: DateWindow) -> Decimal:
        payments = await self.settled_payments(studio_id, window)
        return money_sum(p.amount for p in payments)

    # ------------------------------------------------------------------
    # Operating expenses
    # ------------------------------------------------------------------

    async def expenses(self, studio_id: UUID, window: DateWindow) -> list[Expense]:
        """Operating expenses in the window."""
        result = await self.session.execute(
            select(Expense)
            .where(
                Expense.studio_id == studio_id,
                in_window(Expense.date, Expense.created_at, window),
            )
            .order_by(Expense.id)
        )
        return list(result.scalars().all())

    async def sum_expenses(self, studio_id: UUID, window: DateWindow) -> Decimal:
        expenses = await self.expenses(studio_id, window)
        return money_sum(e.amount for e in expenses)

    # ------------------------------------------------------------------
    # Payroll
    # ------------------------------------------------------------------

    async def paid_payroll_records(
        self, studio_id: UUID, window: DateWindow
    ) -> list[PayrollRecord]:
        """Raw settled payroll records in the window, before deduplication."""
        result = await self.session.execute(
            select(PayrollRecord)
            .where(
                PayrollRecord.studio_id == studio_id,
                PayrollRecord.status == PayrollStatus.PAID.value,
                in_window(PayrollRecord.payment_date, PayrollRecord.created_at, window),
            )
            .order_by(PayrollRecord.id)
        )
        return list(result.scalars().all())

    async def paid_payroll(self, studio_id: UUID, window: DateWindow) -> DedupResult:
        """Settled payroll in the window with consolidated duplicates removed."""
        records = await self.paid_payroll_records(studio_id, window)
        dedup = deduplicate_payroll(records, self.legacy_match_seconds)
        logger.debug(
            "Payroll window %s..%s: %d records, %d kept, %d dropped",
            window.start,
            window.end,
            len(records),
            len(dedup.kept),
            len(dedup.dropped),
        )
        return dedup

    async def sum_paid_payroll(self, studio_id: UUID, window: DateWindow) -> Decimal:
        dedup = await self.paid_payroll(studio_id, window)
        return dedup.total

    async def pending_payroll(self, studio_id: UUID) -> list[PayrollRecord]:
        """All pending payroll records (never deduplicated), newest assignment first."""
        result = await self.session.execute(
            select(PayrollRecord)
            .where(
                PayrollRecord.studio_id == studio_id,
                PayrollRecord.status == PayrollStatus.PENDING.value,
            )
            .order_by(
                PayrollRecord.assignment_date.desc(),
                PayrollRecord.created_at.desc(),
                PayrollRecord.id,
            )
        )
        return list(result.scalars().all())

    async def sum_pending_payroll(self, studio_id: UUID) -> Decimal:
        records = await self.pending_payroll(studio_id)
        return money_sum(r.net_amount for r in records)

    async def payables(self, studio_id: UUID) -> PayablesSummary:
        """Itemised pending payroll with its total."""
        records = await self.pending_payroll(studio_id)
        return PayablesSummary(
            items=records, total=money_sum(r.net_amount for r in records)
        )

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    async def crew_names(self, crew_member_ids: set[UUID]) -> dict[UUID, str]:
        """Names of the given crew members."""
        if not crew_member_ids:
            return {}
        result = await self.session.execute(
            select(CrewMember.id, CrewMember.name).where(
                CrewMember.id.in_(crew_member_ids)
            )
        )
        return {row.id: row.name for row in result}

    async def list_movements(self, studio_id: UUID, window: DateWindow) -> list[Movement]:
        """Unified income/payroll/expense listing, newest first.

        Payroll goes through the same deduplication as the KPI sums, so the
        listing and the totals always agree.
        """
        payments = await self.settled_payments(studio_id, window)
        payroll = (await self.paid_payroll(studio_id, window)).kept
        expenses = await self.expenses(studio_id, window)
        names = await self.crew_names({r.crew_member_id for r in payroll})

        movements = [
            Movement(
                id=p.id,
                date=p.payment_date or p.created_at,
                source="income",
                concept=p.concept or "Income",
                category=p.transaction_category or "Income",
                amount=p.amount,
            )
            for p in payments
        ]
        movements.extend(
            Movement(
                id=r.id,
                date=r.settlement_date,
                source="payroll",
                concept=r.concept or f"Payroll - {names.get(r.crew_member_id, 'Crew')}",
                category="Payroll",
                amount=-r.net_amount,
            )
            for r in payroll
        )
        movements.extend(
            Movement(
                id=e.id,
                date=e.date or e.created_at,
                source="expense",
                concept=e.concept,
                category=e.category,
                amount=-e.amount,
            )
            for e in expenses
        )

        movements.sort(key=lambda m: str(m.id))
        movements.sort(key=lambda m: m.date, reverse=True)
        return movements
