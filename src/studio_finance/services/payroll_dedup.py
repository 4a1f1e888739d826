"""Payroll deduplication filter.

A consolidated payroll record is a synthetic payment that supersedes several
individual records. Any query over a date window must count each disbursement
once, so the visible set is re-derived for every window:

1. Records with payment_type='consolidated' are always kept.
2. Individual (or legacy NULL-typed) records linked to a consolidated record
   present in the same input are dropped.
3. Linked records whose parent is absent from the input are kept: this is the
   only place their value is visible to the query.
4. Unlinked legacy records (payment_type NULL, written before the link
   column existed) are dropped only when a consolidated record of the same
   payee was settled within ``legacy_match_seconds`` of them. Unlinked
   individual records are settlements of their own and are always kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Protocol, Sequence
from uuid import UUID

from studio_finance.calculators.money import money_sum
from studio_finance.services.state_machine import PaymentType

logger = logging.getLogger(__name__)

DEFAULT_LEGACY_MATCH_SECONDS = 1


class PayrollLike(Protocol):
    id: UUID
    crew_member_id: UUID
    payment_type: str | None
    consolidated_payment_id: UUID | None
    payment_date: datetime | None
    net_amount: Decimal


@dataclass
class DedupResult:
    """Outcome of deduplicating a window of payroll records."""

    kept: list = field(default_factory=list)
    dropped: list = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        """Sum of net amounts over the kept records."""
        return money_sum(record.net_amount for record in self.kept)


def _is_consolidated(record: PayrollLike) -> bool:
    return record.payment_type == PaymentType.CONSOLIDATED.value


def _matches_legacy(
    record: PayrollLike,
    consolidated: Sequence[PayrollLike],
    tolerance: timedelta,
) -> bool:
    if record.payment_type is not None or record.payment_date is None:
        return False
    for parent in consolidated:
        if parent.crew_member_id != record.crew_member_id or parent.payment_date is None:
            continue
        if abs(parent.payment_date - record.payment_date) <= tolerance:
            return True
    return False


def deduplicate_payroll(
    records: Iterable[PayrollLike],
    legacy_match_seconds: int = DEFAULT_LEGACY_MATCH_SECONDS,
) -> DedupResult:
    """Return the records that should be summed or listed for one window.

    Kept records preserve input order.
    """
    records = list(records)
    consolidated = [r for r in records if _is_consolidated(r)]
    consolidated_ids = {r.id for r in consolidated}
    tolerance = timedelta(seconds=legacy_match_seconds)

    result = DedupResult()
    for record in records:
        if _is_consolidated(record):
            result.kept.append(record)
            continue

        if record.consolidated_payment_id is not None:
            if record.consolidated_payment_id in consolidated_ids:
                logger.debug(
                    "Dropping payroll %s: represented by consolidated %s",
                    record.id,
                    record.consolidated_payment_id,
                )
                result.dropped.append(record)
            else:
                result.kept.append(record)
            continue

        if consolidated and _matches_legacy(record, consolidated, tolerance):
            logger.debug("Dropping legacy payroll %s: matched by payee and time", record.id)
            result.dropped.append(record)
        else:
            result.kept.append(record)

    return result
