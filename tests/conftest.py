"""Pytest fixtures for studio finance tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime
from decimal import Decimal
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from studio_finance.database import create_all, make_session_factory
from studio_finance.finance import StaticIdentityResolver, StudioFinance
from studio_finance.models import (
    CrewMember,
    Expense,
    Payment,
    PayrollItem,
    PayrollRecord,
    Promise,
    Quote,
    QuoteItem,
    RecurringExpenseDefinition,
    Studio,
)

# In-memory SQLite shared across the connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

STUDIO_SLUG = "demo-studio"
PAYER_ID = UUID("00000000-0000-4000-8000-000000000001")


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = make_session_factory(engine)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def studio(session: AsyncSession) -> Studio:
    """Create the test studio."""
    studio = Studio(slug=STUDIO_SLUG, name="Demo Studio")
    session.add(studio)
    await session.commit()
    return studio


@pytest_asyncio.fixture
async def crew_member(session: AsyncSession, studio: Studio) -> CrewMember:
    """Create a crew member (payee)."""
    crew = CrewMember(studio_id=studio.id, name="Ana Lopez", email="ana@example.com")
    session.add(crew)
    await session.commit()
    return crew


@pytest_asyncio.fixture
async def other_crew_member(session: AsyncSession, studio: Studio) -> CrewMember:
    """Create a second crew member."""
    crew = CrewMember(studio_id=studio.id, name="Luis Perez")
    session.add(crew)
    await session.commit()
    return crew


@pytest.fixture
def finance(session: AsyncSession, studio: Studio) -> StudioFinance:
    """Finance facade acting as a fixed payer."""
    return StudioFinance(session, StaticIdentityResolver(PAYER_ID))


@pytest.fixture
def make_payroll(session: AsyncSession, studio: Studio):
    """Factory for committed payroll records."""

    async def _make(
        crew: CrewMember,
        net: str,
        *,
        gross: str | None = None,
        discounts: str = "0",
        status: str = "pending",
        payment_type: str | None = None,
        payment_date: datetime | None = None,
        consolidated_payment_id: UUID | None = None,
        assignment_date: datetime | None = None,
        concept: str | None = None,
        items: list[tuple[str, str, UUID | None]] | None = None,
    ) -> PayrollRecord:
        record = PayrollRecord(
            studio_id=studio.id,
            crew_member_id=crew.id,
            concept=concept,
            gross_amount=Decimal(gross or net),
            net_amount=Decimal(net),
            total_discounts=Decimal(discounts),
            status=status,
            payment_type=payment_type,
            payment_date=payment_date,
            consolidated_payment_id=consolidated_payment_id,
            assignment_date=assignment_date,
            items=[
                PayrollItem(name=name, cost=Decimal(cost), quote_item_id=quote_item_id, position=i)
                for i, (name, cost, quote_item_id) in enumerate(items or [])
            ],
            partial_payments=[],
        )
        session.add(record)
        await session.commit()
        return record

    return _make


@pytest.fixture
def make_promise(session: AsyncSession, studio: Studio):
    """Factory for committed promises."""

    async def _make(
        name: str = "Wedding Garcia", duration_hours: str | None = None
    ) -> Promise:
        promise = Promise(
            studio_id=studio.id,
            name=name,
            contact_name="Maria Garcia",
            duration_hours=Decimal(duration_hours) if duration_hours else None,
        )
        session.add(promise)
        await session.commit()
        return promise

    return _make


@pytest.fixture
def make_quote(session: AsyncSession, studio: Studio):
    """Factory for committed quotes with optional items.

    Items are (billing_type, quantity, cost_snapshot, expense_snapshot).
    """

    async def _make(
        promise: Promise,
        price: str,
        *,
        discount: str = "0",
        status: str = "approved",
        name: str | None = "Photo package",
        event_duration_hours: str | None = None,
        created_at: datetime | None = None,
        items: list[tuple[str, str, str, str]] | None = None,
    ) -> Quote:
        quote = Quote(
            promise_id=promise.id,
            studio_id=studio.id,
            name=name,
            price=Decimal(price),
            discount=Decimal(discount),
            status=status,
            event_duration_hours=(
                Decimal(event_duration_hours) if event_duration_hours else None
            ),
        )
        if created_at is not None:
            quote.created_at = created_at
        session.add(quote)
        await session.flush()
        for position, (billing_type, quantity, cost, expense) in enumerate(items or []):
            session.add(
                QuoteItem(
                    quote_id=quote.id,
                    name=f"Item {position + 1}",
                    position=position,
                    billing_type=billing_type,
                    quantity=Decimal(quantity),
                    cost_snapshot=Decimal(cost),
                    expense_snapshot=Decimal(expense),
                )
            )
        await session.commit()
        await session.refresh(quote, ["items"])
        return quote

    return _make


@pytest.fixture
def make_payment(session: AsyncSession, studio: Studio):
    """Factory for committed incoming payments."""

    async def _make(
        amount: str,
        *,
        quote: Quote | None = None,
        promise: Promise | None = None,
        status: str = "paid",
        payment_date: datetime | None = None,
        concept: str | None = None,
    ) -> Payment:
        payment = Payment(
            studio_id=studio.id,
            quote_id=quote.id if quote else None,
            promise_id=promise.id if promise else (quote.promise_id if quote else None),
            amount=Decimal(amount),
            status=status,
            payment_date=payment_date,
            concept=concept,
        )
        session.add(payment)
        await session.commit()
        return payment

    return _make


@pytest.fixture
def make_expense(session: AsyncSession, studio: Studio):
    """Factory for committed operating expenses."""

    async def _make(
        amount: str,
        *,
        concept: str = "Studio rent",
        date: datetime | None = None,
        created_at: datetime | None = None,
    ) -> Expense:
        expense = Expense(
            studio_id=studio.id,
            concept=concept,
            amount=Decimal(amount),
            date=date,
        )
        if created_at is not None:
            expense.created_at = created_at
        session.add(expense)
        await session.commit()
        return expense

    return _make


@pytest.fixture
def make_recurring(session: AsyncSession, studio: Studio):
    """Factory for committed recurring expense definitions."""

    async def _make(
        name: str,
        amount: str,
        *,
        frequency: str = "monthly",
        charge_day: int = 1,
        is_active: bool = True,
        crew_member_id: UUID | None = None,
        created_at: datetime | None = None,
    ) -> RecurringExpenseDefinition:
        definition = RecurringExpenseDefinition(
            studio_id=studio.id,
            name=name,
            amount=Decimal(amount),
            frequency=frequency,
            charge_day=charge_day,
            is_active=is_active,
            crew_member_id=crew_member_id,
        )
        if created_at is not None:
            definition.created_at = created_at
        session.add(definition)
        await session.commit()
        return definition

    return _make
