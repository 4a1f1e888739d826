"""Operating expense models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from studio_finance.models.base import Base, IdMixin, TimestampMixin


class RecurringExpenseDefinition(Base, IdMixin, TimestampMixin):
    """Template from which concrete expenses are materialised.

    Fixed crew salaries are stored as definitions with a crew_member_id.
    """

    __tablename__ = "recurring_expense"

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, default="operativo")
    frequency: Mapped[str] = mapped_column(String, nullable=False, default="monthly")
    charge_day: Mapped[int] = mapped_column(nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    crew_member_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("crew_member.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="recurring_expense_amount_check"),
        CheckConstraint(
            "frequency IN ('weekly', 'biweekly', 'monthly')",
            name="recurring_expense_frequency_check",
        ),
        CheckConstraint(
            "charge_day >= 1 AND charge_day <= 31",
            name="recurring_expense_charge_day_check",
        ),
    )


class Expense(Base, IdMixin, TimestampMixin):
    """Operating outflow."""

    __tablename__ = "expense"

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    concept: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, default="operativo")
    date: Mapped[datetime | None] = mapped_column(nullable=True)
    crew_member_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("crew_member.id", ondelete="SET NULL"), nullable=True
    )
    recurring_expense_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("recurring_expense.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="expense_amount_check"),
        UniqueConstraint("recurring_expense_id", "date", name="expense_recurring_once"),
        Index("expense_studio_date", "studio_id", "date"),
    )
