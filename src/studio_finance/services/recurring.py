"""Recurring expense definitions and their materialisation into expenses."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.errors import StorageFailureError
from studio_finance.models import Expense, RecurringExpenseDefinition
from studio_finance.services.windows import DateWindow

logger = logging.getLogger(__name__)


@dataclass
class MaterializationResult:
    """Expenses created for a window; existing instances are skipped."""

    created: list[Expense] = field(default_factory=list)
    skipped: int = 0


def _weekday(charge_day: int) -> int:
    """Map charge_day onto an ISO weekday (1=Monday .. 7=Sunday)."""
    return (charge_day - 1) % 7 + 1


def charge_dates(definition: RecurringExpenseDefinition, window: DateWindow) -> list[date]:
    """Dates inside the window on which a definition is charged.

    monthly: charge_day of each month, clamped to the month's last day.
    weekly: every ISO weekday equal to charge_day (mod 7).
    biweekly: every other such weekday, counted from the first one on or after
    the definition's creation date.
    """
    if definition.frequency == "monthly":
        dates = []
        year, month = window.start.year, window.start.month
        while (year, month) <= (window.end.year, window.end.month):
            last = calendar.monthrange(year, month)[1]
            candidate = date(year, month, min(definition.charge_day, last))
            if window.contains(candidate):
                dates.append(candidate)
            month += 1
            if month > 12:
                year, month = year + 1, 1
        return dates

    weekday = _weekday(definition.charge_day)
    matching = [d for d in window.days() if d.isoweekday() == weekday]
    if definition.frequency == "weekly":
        return matching

    created = definition.created_at.date()
    anchor_offset = (weekday - created.isoweekday()) % 7
    anchor = date.fromordinal(created.toordinal() + anchor_offset)
    return [d for d in matching if d >= anchor and (d - anchor).days % 14 == 0]


class RecurringExpenseService:
    """Lists recurring definitions and materialises due expense instances.

    Crew fixed salaries are definitions with a crew_member_id; both kinds are
    returned together and materialise the same way.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_definitions(
        self, studio_id: UUID, active_only: bool = False
    ) -> list[RecurringExpenseDefinition]:
        query = select(RecurringExpenseDefinition).where(
            RecurringExpenseDefinition.studio_id == studio_id
        )
        if active_only:
            query = query.where(RecurringExpenseDefinition.is_active.is_(True))
        result = await self.session.execute(
            query.order_by(
                RecurringExpenseDefinition.created_at.desc(),
                RecurringExpenseDefinition.id,
            )
        )
        return list(result.scalars().all())

    async def materialize(self, studio_id: UUID, window: DateWindow) -> MaterializationResult:
        """Create the expense instances due in the window (idempotent)."""
        definitions = await self.list_definitions(studio_id, active_only=True)
        outcome = MaterializationResult()
        if not definitions:
            return outcome

        existing_result = await self.session.execute(
            select(Expense.recurring_expense_id, Expense.date).where(
                Expense.recurring_expense_id.in_([d.id for d in definitions]),
                Expense.date >= window.lower,
                Expense.date < window.upper,
            )
        )
        existing = {(row.recurring_expense_id, row.date) for row in existing_result}

        for definition in definitions:
            for charge_date in charge_dates(definition, window):
                charged_at = datetime.combine(charge_date, time.min)
                if (definition.id, charged_at) in existing:
                    outcome.skipped += 1
                    continue
                expense = Expense(
                    studio_id=studio_id,
                    concept=definition.name,
                    amount=definition.amount,
                    category=definition.category,
                    date=charged_at,
                    crew_member_id=definition.crew_member_id,
                    recurring_expense_id=definition.id,
                )
                self.session.add(expense)
                outcome.created.append(expense)

        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Materialising recurring expenses for %s failed", studio_id)
            raise StorageFailureError(f"Could not store recurring expenses: {exc}") from exc

        logger.info(
            "Materialised %d recurring expenses for studio %s (%d already present)",
            len(outcome.created),
            studio_id,
            outcome.skipped,
        )
        return outcome
