"""Payroll record state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from studio_finance.errors import InvalidStateError

if TYPE_CHECKING:
    from studio_finance.models import PayrollRecord


class PayrollStatus(str, Enum):
    """Payroll record status values."""

    PENDING = "pending"
    PAID = "paid"


class PaymentType(str, Enum):
    """How a payroll record was settled."""

    INDIVIDUAL = "individual"
    CONSOLIDATED = "consolidated"


class PaymentMethod(str, Enum):
    """Disbursement methods for payroll."""

    TRANSFER = "transfer"
    CASH = "cash"

    @classmethod
    def parse(cls, value: str) -> PaymentMethod:
        """Parse a method, accepting the Spanish names used by the studio UI."""
        aliases = {"transferencia": cls.TRANSFER, "efectivo": cls.CASH}
        normalized = value.strip().lower()
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


class PayrollStateMachine:
    """State machine for payroll record status transitions.

    Allowed transitions:
    - pending → paid (individual settlement or consolidation)
    - paid → pending (reversal)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollStatus.PENDING.value: [PayrollStatus.PAID.value],
        PayrollStatus.PAID.value: [PayrollStatus.PENDING.value],
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, record: PayrollRecord, to_status: str) -> None:
        """Validate a transition, raising InvalidStateError if invalid."""
        if not cls.can_transition(record.status, to_status):
            raise InvalidStateError(
                "PayrollRecord",
                record.id,
                record.status,
                f"cannot move to '{to_status}'",
            )

    @classmethod
    def is_consolidation_source(cls, record: PayrollRecord) -> bool:
        """Check if a record can be folded into a consolidated payment."""
        return (
            record.status == PayrollStatus.PENDING
            and record.payment_type != PaymentType.CONSOLIDATED
            and record.consolidated_payment_id is None
        )

    @classmethod
    def is_linked(cls, record: PayrollRecord) -> bool:
        """Check if a record is represented by a consolidated parent."""
        return record.consolidated_payment_id is not None
