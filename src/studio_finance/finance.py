"""Studio finance facade - the single entry point for callers.

Usage:
    finance = StudioFinance(session, identity_resolver)

    # Monthly KPIs
    result = await finance.financial_summary("my-studio", parse_month("2024-05"))

    # Settle several pending payroll records with one payment
    result = await finance.consolidate_payroll(
        "my-studio", crew_member_id, [payroll_id_1, payroll_id_2],
        partial_payments=[PartialPaymentInput("transfer", Decimal("100.00"))],
    )
    if not result.ok:
        print(result.error_code, result.message)

The facade:
- Resolves the studio slug for every call
- Runs each mutation in one transaction (commit on success, rollback on error)
- Turns engine errors into OperationResult failures
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.calculators.money import ZERO
from studio_finance.errors import ErrorCode, FinanceError, StorageFailureError
from studio_finance.models import PayrollRecord, RecurringExpenseDefinition
from studio_finance.services.consolidation import (
    ConsolidationCommand,
    ConsolidationResult,
    PartialPaymentInput,
    PayrollConsolidationService,
)
from studio_finance.services.kpi import FinancialSummary, KpiAggregator
from studio_finance.services.ledger_query import (
    LedgerQueryService,
    Movement,
    PayablesSummary,
)
from studio_finance.services.receivables import ReceivablesResolver, ReceivablesSummary
from studio_finance.services.recurring import MaterializationResult, RecurringExpenseService
from studio_finance.services.reversal import PayrollReversalService, ReversalResult
from studio_finance.services.studios import get_studio_id
from studio_finance.services.windows import DateWindow

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    """Success with ``data``, or failure with an error code and message."""

    ok: bool
    data: T | None = None
    error_code: ErrorCode | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, data: T) -> OperationResult[T]:
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: FinanceError) -> OperationResult[T]:
        return cls(
            ok=False,
            error_code=error.code,
            message=error.message,
            details=error.details,
        )


class IdentityResolver(Protocol):
    """Supplies the id of the user performing a payment."""

    def current_user_id(self) -> UUID | None: ...


class StaticIdentityResolver:
    """Identity fixed at construction (request header, tests)."""

    def __init__(self, user_id: UUID | None = None):
        self.user_id = user_id

    def current_user_id(self) -> UUID | None:
        return self.user_id


class StudioFinance:
    """Async facade over the reconciliation and payroll services."""

    def __init__(
        self,
        session: AsyncSession,
        identity_resolver: IdentityResolver | None = None,
    ) -> None:
        self._session = session
        self._identity = identity_resolver or StaticIdentityResolver()

        # Wire up services
        self._ledger = LedgerQueryService(session)
        self._receivables = ReceivablesResolver(session)
        self._kpis = KpiAggregator(session)
        self._consolidation = PayrollConsolidationService(session)
        self._reversal = PayrollReversalService(session)
        self._recurring = RecurringExpenseService(session)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def financial_summary(
        self, slug: str, window: DateWindow
    ) -> OperationResult[FinancialSummary]:
        async def action() -> FinancialSummary:
            studio_id = await get_studio_id(self._session, slug)
            return await self._kpis.compute(studio_id, window)

        return await self._read("financial_summary", action)

    async def receivables(self, slug: str) -> OperationResult[ReceivablesSummary]:
        async def action() -> ReceivablesSummary:
            studio_id = await get_studio_id(self._session, slug)
            return await self._receivables.resolve(studio_id)

        return await self._read("receivables", action)

    async def payables(self, slug: str) -> OperationResult[PayablesSummary]:
        async def action() -> PayablesSummary:
            studio_id = await get_studio_id(self._session, slug)
            return await self._ledger.payables(studio_id)

        return await self._read("payables", action)

    async def movements(
        self, slug: str, window: DateWindow
    ) -> OperationResult[list[Movement]]:
        async def action() -> list[Movement]:
            studio_id = await get_studio_id(self._session, slug)
            return await self._ledger.list_movements(studio_id, window)

        return await self._read("movements", action)

    async def recurring_expenses(
        self, slug: str
    ) -> OperationResult[list[RecurringExpenseDefinition]]:
        async def action() -> list[RecurringExpenseDefinition]:
            studio_id = await get_studio_id(self._session, slug)
            return await self._recurring.list_definitions(studio_id)

        return await self._read("recurring_expenses", action)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def consolidate_payroll(
        self,
        slug: str,
        crew_member_id: UUID,
        payroll_ids: list[UUID],
        discount: Decimal = ZERO,
        partial_payments: list[PartialPaymentInput] | None = None,
        payment_method: str | None = None,
        concept: str | None = None,
        idempotency_key: str | None = None,
    ) -> OperationResult[ConsolidationResult]:
        """Settle several pending records of one crew member with one payment."""

        async def action() -> ConsolidationResult:
            studio_id = await get_studio_id(self._session, slug)
            return await self._consolidation.consolidate(
                ConsolidationCommand(
                    studio_id=studio_id,
                    crew_member_id=crew_member_id,
                    payroll_ids=list(payroll_ids),
                    discount=discount,
                    partial_payments=list(partial_payments or []),
                    paid_by=self._identity.current_user_id(),
                    payment_method=payment_method,
                    concept=concept,
                    idempotency_key=idempotency_key,
                )
            )

        return await self._write("consolidate_payroll", action)

    async def settle_payroll(
        self, slug: str, payroll_id: UUID, payment_method: str | None = None
    ) -> OperationResult[PayrollRecord]:
        """Mark one pending record as paid."""

        async def action() -> PayrollRecord:
            studio_id = await get_studio_id(self._session, slug)
            return await self._consolidation.settle_single(
                studio_id,
                payroll_id,
                paid_by=self._identity.current_user_id(),
                payment_method=payment_method,
            )

        return await self._write("settle_payroll", action)

    async def reverse_consolidation(
        self, slug: str, consolidated_id: UUID
    ) -> OperationResult[ReversalResult]:
        async def action() -> ReversalResult:
            studio_id = await get_studio_id(self._session, slug)
            return await self._reversal.reverse_consolidation(studio_id, consolidated_id)

        return await self._write("reverse_consolidation", action)

    async def reverse_payroll(
        self, slug: str, payroll_id: UUID
    ) -> OperationResult[ReversalResult]:
        async def action() -> ReversalResult:
            studio_id = await get_studio_id(self._session, slug)
            return await self._reversal.reverse_single(studio_id, payroll_id)

        return await self._write("reverse_payroll", action)

    async def cancel_payroll(
        self, slug: str, payroll_id: UUID
    ) -> OperationResult[ReversalResult]:
        async def action() -> ReversalResult:
            studio_id = await get_studio_id(self._session, slug)
            return await self._reversal.cancel_record(studio_id, payroll_id)

        return await self._write("cancel_payroll", action)

    async def materialize_recurring_expenses(
        self, slug: str, window: DateWindow
    ) -> OperationResult[MaterializationResult]:
        async def action() -> MaterializationResult:
            studio_id = await get_studio_id(self._session, slug)
            return await self._recurring.materialize(studio_id, window)

        return await self._write("materialize_recurring_expenses", action)

    # ------------------------------------------------------------------
    # Transaction handling
    # ------------------------------------------------------------------

    async def _read(
        self, operation: str, action: Callable[[], Awaitable[T]]
    ) -> OperationResult[T]:
        try:
            return OperationResult.success(await action())
        except FinanceError as exc:
            logger.info("%s failed: %s", operation, exc.message)
            return OperationResult.failure(exc)
        except SQLAlchemyError as exc:
            logger.exception("%s failed in the store", operation)
            return OperationResult.failure(StorageFailureError(f"{operation} failed: {exc}"))

    async def _write(
        self, operation: str, action: Callable[[], Awaitable[T]]
    ) -> OperationResult[T]:
        try:
            data = await action()
            await self._session.commit()
        except FinanceError as exc:
            await self._session.rollback()
            logger.info("%s rolled back: %s", operation, exc.message)
            return OperationResult.failure(exc)
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("%s failed in the store", operation)
            return OperationResult.failure(StorageFailureError(f"{operation} failed: {exc}"))
        except Exception:
            await self._session.rollback()
            logger.exception("Unexpected error in %s", operation)
            raise
        return OperationResult.success(data)
