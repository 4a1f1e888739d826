"""Tests for the payroll deduplication filter."""

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from studio_finance.services.payroll_dedup import deduplicate_payroll

CREW = uuid4()
OTHER_CREW = uuid4()
PAID_AT = datetime(2024, 5, 20, 12, 0, 0)


def payroll(
    net: str,
    payment_type=None,
    consolidated_payment_id=None,
    payment_date=PAID_AT,
    crew_member_id=CREW,
):
    return SimpleNamespace(
        id=uuid4(),
        crew_member_id=crew_member_id,
        payment_type=payment_type,
        consolidated_payment_id=consolidated_payment_id,
        payment_date=payment_date,
        net_amount=Decimal(net),
    )


class TestLinkedRecords:
    """Records linked to a consolidated parent."""

    def test_linked_records_dropped_when_parent_present(self):
        parent = payroll("150", payment_type="consolidated")
        first = payroll("100", "individual", parent.id)
        second = payroll("50", "individual", parent.id)

        result = deduplicate_payroll([first, parent, second])

        assert result.kept == [parent]
        assert result.dropped == [first, second]
        assert result.total == Decimal("150.00")

    def test_linked_record_kept_when_parent_outside_window(self):
        """Only visible occurrence of the money, so it is counted."""
        child = payroll("100", "individual", uuid4())
        result = deduplicate_payroll([child])
        assert result.kept == [child]
        assert result.total == Decimal("100.00")

    def test_null_typed_linked_record(self):
        parent = payroll("80", payment_type="consolidated")
        child = payroll("80", None, parent.id)
        result = deduplicate_payroll([parent, child])
        assert result.kept == [parent]


class TestLegacyHeuristic:
    """Unlinked records settled together with a consolidated payment."""

    def test_same_payee_within_tolerance_dropped(self):
        parent = payroll("100", payment_type="consolidated")
        legacy = payroll("100", payment_date=PAID_AT + timedelta(milliseconds=400))
        result = deduplicate_payroll([parent, legacy])
        assert result.kept == [parent]
        assert result.dropped == [legacy]

    def test_outside_tolerance_kept(self):
        parent = payroll("100", payment_type="consolidated")
        legacy = payroll("100", payment_date=PAID_AT + timedelta(seconds=5))
        result = deduplicate_payroll([parent, legacy])
        assert result.kept == [parent, legacy]

    def test_other_payee_kept(self):
        parent = payroll("100", payment_type="consolidated")
        legacy = payroll("100", crew_member_id=OTHER_CREW)
        result = deduplicate_payroll([parent, legacy])
        assert result.kept == [parent, legacy]

    def test_tolerance_is_configurable(self):
        parent = payroll("100", payment_type="consolidated")
        legacy = payroll("100", payment_date=PAID_AT + timedelta(seconds=5))
        result = deduplicate_payroll([parent, legacy], legacy_match_seconds=10)
        assert result.kept == [parent]

    def test_no_payment_date_never_matches(self):
        parent = payroll("100", payment_type="consolidated")
        legacy = payroll("100", payment_date=None)
        result = deduplicate_payroll([parent, legacy])
        assert legacy in result.kept

    def test_unlinked_individual_record_kept(self):
        """A record settled on its own is never matched by time."""
        parent = payroll("100", payment_type="consolidated")
        single = payroll("50", "individual", payment_date=PAID_AT + timedelta(milliseconds=200))
        result = deduplicate_payroll([parent, single])
        assert result.kept == [parent, single]
        assert result.total == Decimal("150.00")


class TestPlainRecords:
    """Windows without consolidation."""

    def test_all_individual_records_kept_in_order(self):
        records = [payroll("10"), payroll("20"), payroll("30", "individual")]
        result = deduplicate_payroll(records)
        assert result.kept == records
        assert result.dropped == []
        assert result.total == Decimal("60.00")

    def test_empty(self):
        result = deduplicate_payroll([])
        assert result.kept == []
        assert result.total == Decimal("0")
