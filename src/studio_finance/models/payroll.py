"""Crew payroll records, consolidation children and idempotency rows."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_finance.models.base import Base, IdMixin, TimestampMixin


class CrewMember(Base, IdMixin, TimestampMixin):
    """Payee: a single crew member of a studio."""

    __tablename__ = "crew_member"

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)


class PayrollRecord(Base, IdMixin, TimestampMixin):
    """Obligation owed to one crew member ("nómina").

    A record with payment_type='consolidated' is the synthetic payment that
    stands in for several individual records; those keep
    payment_type='individual' and point at it through consolidated_payment_id.
    """

    __tablename__ = "payroll_record"

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    crew_member_id: Mapped[UUID] = mapped_column(
        ForeignKey("crew_member.id", ondelete="CASCADE"), nullable=False
    )
    concept: Mapped[str | None] = mapped_column(Text, nullable=True)
    gross_amount: Mapped[Decimal] = mapped_column(nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_discounts: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    payment_type: Mapped[str | None] = mapped_column(String, nullable=True)
    # payment_type before settlement, restored on reversal
    prior_payment_type: Mapped[str | None] = mapped_column(String, nullable=True)
    consolidated_payment_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_record.id"), nullable=True
    )
    assignment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_by: Mapped[UUID | None] = mapped_column(nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'paid')", name="payroll_status_check"),
        CheckConstraint(
            "payment_type IS NULL OR payment_type IN ('individual', 'consolidated')",
            name="payroll_payment_type_check",
        ),
        CheckConstraint(
            "prior_payment_type IS NULL OR prior_payment_type = 'individual'",
            name="payroll_prior_payment_type_check",
        ),
        CheckConstraint("net_amount >= 0", name="payroll_net_amount_check"),
        CheckConstraint(
            "consolidated_payment_id IS NULL OR payment_type = 'individual'",
            name="payroll_link_only_individual",
        ),
        Index("payroll_studio_status_date", "studio_id", "status", "payment_date"),
        Index("payroll_crew_status", "crew_member_id", "status"),
        Index("payroll_consolidated", "consolidated_payment_id"),
    )

    # Relationships
    items: Mapped[list[PayrollItem]] = relationship(
        back_populates="payroll",
        lazy="selectin",
        order_by="PayrollItem.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    partial_payments: Mapped[list[PartialPayment]] = relationship(
        back_populates="payroll",
        lazy="selectin",
        order_by="PartialPayment.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_consolidated(self) -> bool:
        return self.payment_type == "consolidated"

    @property
    def settlement_date(self) -> datetime:
        """Authoritative date for window matching (payment date, else creation)."""
        return self.payment_date if self.payment_date is not None else self.created_at


class PayrollItem(Base, IdMixin):
    """Itemised service/cost line carried by a payroll record."""

    __tablename__ = "payroll_item"

    payroll_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_record.id", ondelete="CASCADE"), nullable=False
    )
    quote_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("quote_item.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("1")
    )

    # Relationships
    payroll: Mapped[PayrollRecord] = relationship(back_populates="items", lazy="raise")


class PartialPayment(Base, IdMixin, TimestampMixin):
    """One method/amount slice of a consolidated payroll payment."""

    __tablename__ = "payroll_partial_payment"

    payroll_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_record.id", ondelete="CASCADE"), nullable=False
    )
    method: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("amount > 0", name="partial_payment_amount_check"),
        CheckConstraint(
            "method IN ('transfer', 'cash')", name="partial_payment_method_check"
        ),
    )

    # Relationships
    payroll: Mapped[PayrollRecord] = relationship(
        back_populates="partial_payments", lazy="raise"
    )


class ConsolidationRequest(Base, IdMixin, TimestampMixin):
    """Idempotency row for a consolidation call.

    Idempotent by (studio_id, idempotency_key).
    """

    __tablename__ = "payroll_consolidation_request"

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    idempotency_key: Mapped[str] = mapped_column(String, nullable=False)
    consolidated_payment_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_record.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "studio_id", "idempotency_key", name="payroll_consolidation_idem_uq"
        ),
    )
