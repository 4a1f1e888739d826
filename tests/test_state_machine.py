"""Tests for payroll record state machine."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from studio_finance.errors import ErrorCode, InvalidStateError
from studio_finance.services.state_machine import (
    PaymentMethod,
    PayrollStateMachine,
    PayrollStatus,
)


def record(status="pending", payment_type=None, consolidated_payment_id=None):
    return SimpleNamespace(
        id=uuid4(),
        status=status,
        payment_type=payment_type,
        consolidated_payment_id=consolidated_payment_id,
    )


class TestPayrollStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        # pending → paid (settlement)
        assert PayrollStateMachine.can_transition("pending", "paid") is True
        # paid → pending (reversal)
        assert PayrollStateMachine.can_transition("paid", "pending") is True

    def test_invalid_transitions(self):
        assert PayrollStateMachine.can_transition("pending", "pending") is False
        assert PayrollStateMachine.can_transition("paid", "paid") is False
        assert PayrollStateMachine.can_transition("cancelled", "paid") is False

    def test_enum_values_work_as_keys(self):
        assert PayrollStateMachine.can_transition(
            PayrollStatus.PENDING.value, PayrollStatus.PAID.value
        )

    def test_validate_transition_raises(self):
        pending = record()
        with pytest.raises(InvalidStateError) as exc_info:
            PayrollStateMachine.validate_transition(pending, "pending")

        assert exc_info.value.code == ErrorCode.INVALID_STATE
        assert exc_info.value.status == "pending"
        assert exc_info.value.entity_id == pending.id

    def test_consolidation_source(self):
        assert PayrollStateMachine.is_consolidation_source(record()) is True
        assert PayrollStateMachine.is_consolidation_source(record(status="paid")) is False
        assert (
            PayrollStateMachine.is_consolidation_source(record(payment_type="consolidated"))
            is False
        )
        assert (
            PayrollStateMachine.is_consolidation_source(
                record(consolidated_payment_id=uuid4())
            )
            is False
        )


class TestPaymentMethod:
    """Payment method parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("transfer", PaymentMethod.TRANSFER),
            ("Transferencia", PaymentMethod.TRANSFER),
            ("cash", PaymentMethod.CASH),
            (" efectivo ", PaymentMethod.CASH),
        ],
    )
    def test_parse(self, value: str, expected: PaymentMethod):
        assert PaymentMethod.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            PaymentMethod.parse("cheque")
