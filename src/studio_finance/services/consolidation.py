"""Payroll consolidation: many pending records settled by one payment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.calculators.item_merge import merge_items
from studio_finance.calculators.money import ZERO, money_sum, within_tolerance
from studio_finance.config import get_settings
from studio_finance.errors import (
    InvalidStateError,
    NotFoundError,
    StorageFailureError,
    ValidationFailedError,
)
from studio_finance.models import (
    ConsolidationRequest,
    CrewMember,
    PartialPayment,
    PayrollItem,
    PayrollRecord,
    utcnow,
)
from studio_finance.services.state_machine import (
    PaymentMethod,
    PaymentType,
    PayrollStateMachine,
    PayrollStatus,
)

logger = logging.getLogger(__name__)

MIXED_METHOD = "mixed"


@dataclass(frozen=True)
class PartialPaymentInput:
    """One slice of a split payment."""

    method: str
    amount: Decimal


@dataclass
class ConsolidationCommand:
    """Request to settle several pending payroll records of one payee."""

    studio_id: UUID
    crew_member_id: UUID
    payroll_ids: list[UUID]
    discount: Decimal = ZERO
    partial_payments: list[PartialPaymentInput] = field(default_factory=list)
    paid_by: UUID | None = None
    payment_method: str | None = None
    concept: str | None = None
    idempotency_key: str | None = None


@dataclass(frozen=True)
class ConsolidationResult:
    """Result of a consolidation.

    ``is_new`` is False when an idempotency key matched an earlier call; the
    existing consolidated payment is returned and nothing changed.
    """

    consolidated_payment_id: UUID
    is_new: bool
    record_ids: list[UUID]
    gross_amount: Decimal
    net_amount: Decimal
    discount: Decimal
    payment_date: datetime
    partial_payments: list[PartialPaymentInput]


class PayrollConsolidationService:
    """Write side of payroll settlement.

    Key invariants:
    1. Validation (existence, ownership, pending status, amounts) happens
       before any mutation.
    2. Source records stay payment_type='individual', become 'paid' and point
       at the consolidated record; the deduplication filter relies on it.
    3. The service only flushes. The caller's transaction commits or rolls
       back the whole call, so a payee never ends up half settled.
    4. Source rows are read with SELECT ... FOR UPDATE so two consolidations
       of the same records serialise on the store.
    """

    def __init__(self, session: AsyncSession, tolerance: Decimal | None = None):
        self.session = session
        self.tolerance = tolerance if tolerance is not None else get_settings().money_tolerance

    async def consolidate(self, command: ConsolidationCommand) -> ConsolidationResult:
        partials = self._validate_command(command)

        if command.idempotency_key:
            existing = await self._find_by_idempotency_key(
                command.studio_id, command.idempotency_key
            )
            if existing is not None:
                logger.info(
                    "Consolidation key %s already applied as %s",
                    command.idempotency_key,
                    existing.consolidated_payment_id,
                )
                return existing

        await self._get_crew_member(command.studio_id, command.crew_member_id)
        records = await self._load_sources(command)

        gross_total = money_sum(r.gross_amount for r in records)
        net_total = money_sum(r.net_amount for r in records)
        discount = command.discount
        payable = net_total - discount
        if payable < 0:
            raise ValidationFailedError(
                f"Discount {discount} exceeds net total {net_total}"
            )
        if partials:
            partial_total = money_sum(p.amount for p in partials)
            if not within_tolerance(partial_total, payable, self.tolerance):
                raise ValidationFailedError(
                    f"Partial payments sum to {partial_total}, expected {payable}"
                )

        paid_at = utcnow()
        consolidated_id = uuid4()
        method = self._resolve_method(command, partials)
        merged = merge_items(item for record in records for item in record.items)

        consolidated = PayrollRecord(
            id=consolidated_id,
            studio_id=command.studio_id,
            crew_member_id=command.crew_member_id,
            concept=command.concept or f"Consolidated payroll ({len(records)} records)",
            gross_amount=gross_total,
            net_amount=payable,
            total_discounts=money_sum(r.total_discounts for r in records) + discount,
            status=PayrollStatus.PAID.value,
            payment_type=PaymentType.CONSOLIDATED.value,
            payment_date=paid_at,
            paid_by=command.paid_by,
            payment_method=method,
            items=[
                PayrollItem(
                    name=item.name,
                    position=position,
                    cost=item.cost,
                    quantity=item.quantity,
                    quote_item_id=item.quote_item_id,
                )
                for position, item in enumerate(merged)
            ],
            partial_payments=[
                PartialPayment(method=p.method, amount=p.amount, position=position)
                for position, p in enumerate(partials)
            ],
        )

        try:
            self.session.add(consolidated)
            # Parent row must exist before the sources reference it
            await self.session.flush()

            for record in records:
                record.status = PayrollStatus.PAID.value
                record.prior_payment_type = record.payment_type
                record.payment_type = PaymentType.INDIVIDUAL.value
                record.payment_date = paid_at
                record.paid_by = command.paid_by
                record.payment_method = method
                record.consolidated_payment_id = consolidated_id

            if command.idempotency_key:
                self.session.add(
                    ConsolidationRequest(
                        studio_id=command.studio_id,
                        idempotency_key=command.idempotency_key,
                        consolidated_payment_id=consolidated_id,
                    )
                )
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Consolidation for crew member %s failed", command.crew_member_id)
            raise StorageFailureError(f"Could not store consolidation: {exc}") from exc

        logger.info(
            "Consolidated %d payroll records for crew member %s into %s (net %s)",
            len(records),
            command.crew_member_id,
            consolidated_id,
            payable,
        )
        return ConsolidationResult(
            consolidated_payment_id=consolidated_id,
            is_new=True,
            record_ids=[r.id for r in records],
            gross_amount=gross_total,
            net_amount=payable,
            discount=discount,
            payment_date=paid_at,
            partial_payments=partials,
        )

    async def settle_single(
        self,
        studio_id: UUID,
        payroll_id: UUID,
        paid_by: UUID | None = None,
        payment_method: str | None = None,
    ) -> PayrollRecord:
        """Mark one pending record as paid on its own."""
        record = await self._get_record(studio_id, payroll_id, for_update=True)

        if not PayrollStateMachine.is_consolidation_source(record):
            raise InvalidStateError(
                "PayrollRecord", payroll_id, record.status, "only pending records can be settled"
            )
        PayrollStateMachine.validate_transition(record, PayrollStatus.PAID.value)
        method = self._parse_method(payment_method) if payment_method else None

        try:
            record.status = PayrollStatus.PAID.value
            record.prior_payment_type = record.payment_type
            record.payment_type = PaymentType.INDIVIDUAL.value
            record.payment_date = utcnow()
            record.paid_by = paid_by
            record.payment_method = method
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Settling payroll %s failed", payroll_id)
            raise StorageFailureError(f"Could not store settlement: {exc}") from exc

        logger.info("Settled payroll %s individually", payroll_id)
        return record

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _validate_command(self, command: ConsolidationCommand) -> list[PartialPaymentInput]:
        """Check shape and amounts; returns partial payments with parsed methods."""
        errors: list[str] = []

        if not command.payroll_ids:
            errors.append("At least one payroll record is required")
        if len(set(command.payroll_ids)) != len(command.payroll_ids):
            errors.append("Payroll record ids must be unique")
        if command.discount is None or command.discount < 0:
            errors.append("Discount must be zero or positive")

        partials: list[PartialPaymentInput] = []
        for index, partial in enumerate(command.partial_payments):
            if partial.amount is None or partial.amount <= 0:
                errors.append(f"Partial payment {index + 1} amount must be positive")
                continue
            try:
                method = PaymentMethod.parse(partial.method).value
            except ValueError:
                errors.append(f"Partial payment {index + 1} has unknown method '{partial.method}'")
                continue
            partials.append(PartialPaymentInput(method=method, amount=partial.amount))

        if errors:
            raise ValidationFailedError("; ".join(errors), errors)
        return partials

    def _resolve_method(
        self, command: ConsolidationCommand, partials: list[PartialPaymentInput]
    ) -> str | None:
        if partials:
            methods = {p.method for p in partials}
            return methods.pop() if len(methods) == 1 else MIXED_METHOD
        if command.payment_method:
            return self._parse_method(command.payment_method)
        return None

    @staticmethod
    def _parse_method(value: str) -> str:
        try:
            return PaymentMethod.parse(value).value
        except ValueError as exc:
            raise ValidationFailedError(f"Unknown payment method '{value}'") from exc

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------

    async def _find_by_idempotency_key(
        self, studio_id: UUID, key: str
    ) -> ConsolidationResult | None:
        result = await self.session.execute(
            select(ConsolidationRequest).where(
                ConsolidationRequest.studio_id == studio_id,
                ConsolidationRequest.idempotency_key == key,
            )
        )
        request = result.scalar_one_or_none()
        if request is None:
            return None

        consolidated = await self._get_record(studio_id, request.consolidated_payment_id)
        linked_result = await self.session.execute(
            select(PayrollRecord)
            .where(PayrollRecord.consolidated_payment_id == consolidated.id)
            .order_by(PayrollRecord.id)
        )
        linked = list(linked_result.scalars().all())
        return ConsolidationResult(
            consolidated_payment_id=consolidated.id,
            is_new=False,
            record_ids=[r.id for r in linked],
            gross_amount=consolidated.gross_amount,
            net_amount=consolidated.net_amount,
            discount=consolidated.total_discounts
            - money_sum(r.total_discounts for r in linked),
            payment_date=consolidated.settlement_date,
            partial_payments=[
                PartialPaymentInput(method=p.method, amount=p.amount)
                for p in consolidated.partial_payments
            ],
        )

    async def _get_crew_member(self, studio_id: UUID, crew_member_id: UUID) -> CrewMember:
        crew = await self.session.get(CrewMember, crew_member_id)
        if crew is None or crew.studio_id != studio_id:
            raise NotFoundError("CrewMember", crew_member_id)
        return crew

    async def _get_record(
        self, studio_id: UUID, payroll_id: UUID, for_update: bool = False
    ) -> PayrollRecord:
        query = select(PayrollRecord).where(
            PayrollRecord.id == payroll_id,
            PayrollRecord.studio_id == studio_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("PayrollRecord", payroll_id)
        return record

    async def _load_sources(self, command: ConsolidationCommand) -> list[PayrollRecord]:
        """Lock and validate the source records, in input order."""
        result = await self.session.execute(
            select(PayrollRecord)
            .where(
                PayrollRecord.id.in_(command.payroll_ids),
                PayrollRecord.studio_id == command.studio_id,
            )
            .order_by(PayrollRecord.id)
            .with_for_update()
        )
        found = {r.id: r for r in result.scalars().all()}

        records: list[PayrollRecord] = []
        for payroll_id in command.payroll_ids:
            record = found.get(payroll_id)
            if record is None:
                raise NotFoundError("PayrollRecord", payroll_id)
            if record.crew_member_id != command.crew_member_id:
                raise ValidationFailedError(
                    f"Payroll record {payroll_id} does not belong to crew member "
                    f"{command.crew_member_id}"
                )
            if not PayrollStateMachine.is_consolidation_source(record):
                raise InvalidStateError(
                    "PayrollRecord",
                    payroll_id,
                    record.status,
                    "only pending, unlinked records can be consolidated",
                )
            records.append(record)
        return records
