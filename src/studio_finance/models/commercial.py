"""Studio, promise, quote and incoming payment models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_finance.models.base import Base, IdMixin, TimestampMixin

# Quote statuses that make a quote a receivable. The Spanish spellings are
# still written by older sales flows.
APPROVED_QUOTE_STATUSES = frozenset(
    {"approved", "authorized", "aprobada", "autorizada", "correcto"}
)

# Payment statuses that count as money received.
SETTLED_PAYMENT_STATUSES = frozenset({"paid", "completed"})


class Studio(Base, IdMixin, TimestampMixin):
    """Tenant: one studio account."""

    __tablename__ = "studio"

    slug: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)


class Promise(Base, IdMixin, TimestampMixin):
    """Sales lead/commitment owning zero or more quotes."""

    __tablename__ = "promise"

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    contact_name: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    duration_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)

    __table_args__ = (Index("promise_studio", "studio_id"),)

    # Relationships
    quotes: Mapped[list[Quote]] = relationship(
        back_populates="promise", lazy="selectin", order_by="Quote.created_at"
    )


class Quote(Base, IdMixin, TimestampMixin):
    """Priced proposal belonging to exactly one promise."""

    __tablename__ = "quote"

    promise_id: Mapped[UUID] = mapped_column(
        ForeignKey("promise.id", ondelete="CASCADE"), nullable=False
    )
    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    event_duration_hours: Mapped[Decimal | None] = mapped_column(
        Numeric(8, 2), nullable=True
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="quote_price_check"),
        CheckConstraint("discount >= 0", name="quote_discount_check"),
        CheckConstraint("discount <= price", name="quote_effective_total_check"),
        Index("quote_promise_status", "promise_id", "status"),
    )

    # Relationships
    promise: Mapped[Promise] = relationship(back_populates="quotes", lazy="raise")
    items: Mapped[list[QuoteItem]] = relationship(
        back_populates="quote", lazy="selectin", order_by="QuoteItem.position"
    )

    @property
    def effective_total(self) -> Decimal:
        """Price net of discount, never negative."""
        return max(self.price - (self.discount or Decimal("0")), Decimal("0"))

    @property
    def is_approved(self) -> bool:
        """Check if the quote is in an approved-like status."""
        return self.status in APPROVED_QUOTE_STATUSES


class QuoteItem(Base, IdMixin, TimestampMixin):
    """Service line of a quote with cost snapshots taken at quoting time."""

    __tablename__ = "quote_item"

    quote_id: Mapped[UUID] = mapped_column(
        ForeignKey("quote.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    billing_type: Mapped[str] = mapped_column(String, nullable=False, default="SERVICE")
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("1")
    )
    unit_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    cost_snapshot: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    expense_snapshot: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        CheckConstraint(
            "billing_type IN ('HOUR', 'SERVICE', 'UNIT')",
            name="quote_item_billing_type_check",
        ),
        CheckConstraint("quantity >= 0", name="quote_item_quantity_check"),
    )

    # Relationships
    quote: Mapped[Quote] = relationship(back_populates="items", lazy="raise")


class Payment(Base, IdMixin, TimestampMixin):
    """Monetary inflow, optionally attributed to one quote or one promise."""

    __tablename__ = "payment"

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studio.id", ondelete="CASCADE"), nullable=False
    )
    quote_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("quote.id", ondelete="SET NULL"), nullable=True
    )
    promise_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("promise.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    concept: Mapped[str | None] = mapped_column(Text, nullable=True)
    method: Mapped[str | None] = mapped_column(String, nullable=True)
    transaction_category: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="payment_amount_check"),
        CheckConstraint(
            "status IN ('pending', 'paid', 'completed', 'cancelled')",
            name="payment_status_check",
        ),
        Index("payment_studio_date", "studio_id", "status", "payment_date"),
        Index("payment_quote", "quote_id"),
        Index("payment_promise", "promise_id"),
    )

    @property
    def is_settled(self) -> bool:
        """Check if the payment counts as received money."""
        return self.status in SETTLED_PAYMENT_STATUSES
