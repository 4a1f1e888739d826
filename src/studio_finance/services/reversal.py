"""Reversal of payroll settlements and consolidations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.calculators.money import money_sum
from studio_finance.errors import InvalidStateError, NotFoundError, StorageFailureError
from studio_finance.models import ConsolidationRequest, PayrollRecord
from studio_finance.services.state_machine import (
    PayrollStateMachine,
    PayrollStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReversalResult:
    """Result of undoing a consolidation or a single settlement."""

    reversed_id: UUID
    restored_ids: list[UUID]
    restored_net_amount: Decimal
    deleted: bool


def reset_settlement(record: PayrollRecord) -> None:
    """Return a record to pending with every settlement field cleared."""
    record.status = PayrollStatus.PENDING.value
    record.payment_type = record.prior_payment_type
    record.prior_payment_type = None
    record.payment_date = None
    record.paid_by = None
    record.payment_method = None
    record.consolidated_payment_id = None


class PayrollReversalService:
    """Undo operations for payroll settlement.

    Like consolidation, the service only flushes; the caller's transaction
    makes each reversal all-or-nothing.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def reverse_consolidation(
        self, studio_id: UUID, consolidated_id: UUID
    ) -> ReversalResult:
        """Delete a consolidated payment and reopen every record it settled."""
        consolidated = await self._get_record(studio_id, consolidated_id)
        if not consolidated.is_consolidated:
            raise InvalidStateError(
                "PayrollRecord",
                consolidated_id,
                consolidated.status,
                "not a consolidated payment",
            )

        result = await self.session.execute(
            select(PayrollRecord)
            .where(PayrollRecord.consolidated_payment_id == consolidated_id)
            .order_by(PayrollRecord.id)
            .with_for_update()
        )
        linked = list(result.scalars().all())

        try:
            for record in linked:
                reset_settlement(record)
            # Unlink before the parent row goes away
            await self.session.flush()

            await self.session.execute(
                delete(ConsolidationRequest).where(
                    ConsolidationRequest.consolidated_payment_id == consolidated_id
                )
            )
            await self.session.delete(consolidated)
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Reversing consolidation %s failed", consolidated_id)
            raise StorageFailureError(f"Could not reverse consolidation: {exc}") from exc

        logger.info(
            "Reversed consolidation %s, %d records back to pending",
            consolidated_id,
            len(linked),
        )
        return ReversalResult(
            reversed_id=consolidated_id,
            restored_ids=[r.id for r in linked],
            restored_net_amount=money_sum(r.net_amount for r in linked),
            deleted=True,
        )

    async def reverse_single(self, studio_id: UUID, payroll_id: UUID) -> ReversalResult:
        """Reopen one individually settled record."""
        record = await self._get_record(studio_id, payroll_id)

        if record.is_consolidated:
            raise InvalidStateError(
                "PayrollRecord",
                payroll_id,
                record.status,
                "consolidated payments are reversed as a whole",
            )
        if PayrollStateMachine.is_linked(record):
            raise InvalidStateError(
                "PayrollRecord",
                payroll_id,
                record.status,
                f"settled by consolidated payment {record.consolidated_payment_id}",
            )
        PayrollStateMachine.validate_transition(record, PayrollStatus.PENDING.value)

        try:
            reset_settlement(record)
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Reversing payroll %s failed", payroll_id)
            raise StorageFailureError(f"Could not reverse settlement: {exc}") from exc

        logger.info("Reversed individual settlement of payroll %s", payroll_id)
        return ReversalResult(
            reversed_id=payroll_id,
            restored_ids=[payroll_id],
            restored_net_amount=record.net_amount,
            deleted=False,
        )

    async def cancel_record(self, studio_id: UUID, payroll_id: UUID) -> ReversalResult:
        """Delete one standalone payroll record (explicit single-record cancel)."""
        record = await self._get_record(studio_id, payroll_id)

        if record.is_consolidated or PayrollStateMachine.is_linked(record):
            raise InvalidStateError(
                "PayrollRecord",
                payroll_id,
                record.status,
                "reverse the consolidation before cancelling its records",
            )

        try:
            await self.session.delete(record)
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Cancelling payroll %s failed", payroll_id)
            raise StorageFailureError(f"Could not cancel payroll record: {exc}") from exc

        logger.info("Cancelled payroll %s", payroll_id)
        return ReversalResult(
            reversed_id=payroll_id,
            restored_ids=[],
            restored_net_amount=record.net_amount,
            deleted=True,
        )

    async def _get_record(self, studio_id: UUID, payroll_id: UUID) -> PayrollRecord:
        result = await self.session.execute(
            select(PayrollRecord)
            .where(
                PayrollRecord.id == payroll_id,
                PayrollRecord.studio_id == studio_id,
            )
            .with_for_update()
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("PayrollRecord", payroll_id)
        return record
