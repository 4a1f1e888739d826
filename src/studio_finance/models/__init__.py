"""ORM models for the studio finance engine."""

from studio_finance.models.base import Base, utcnow
from studio_finance.models.commercial import (
    APPROVED_QUOTE_STATUSES,
    SETTLED_PAYMENT_STATUSES,
    Payment,
    Promise,
    Quote,
    QuoteItem,
    Studio,
)
from studio_finance.models.ledger import Expense, RecurringExpenseDefinition
from studio_finance.models.payroll import (
    ConsolidationRequest,
    CrewMember,
    PartialPayment,
    PayrollItem,
    PayrollRecord,
)

__all__ = [
    "APPROVED_QUOTE_STATUSES",
    "SETTLED_PAYMENT_STATUSES",
    "Base",
    "ConsolidationRequest",
    "CrewMember",
    "Expense",
    "PartialPayment",
    "Payment",
    "PayrollItem",
    "PayrollRecord",
    "Promise",
    "Quote",
    "QuoteItem",
    "RecurringExpenseDefinition",
    "Studio",
    "utcnow",
]
