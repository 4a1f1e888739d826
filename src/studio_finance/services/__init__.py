"""Studio finance services."""

from studio_finance.services.consolidation import (
    ConsolidationCommand,
    ConsolidationResult,
    PartialPaymentInput,
    PayrollConsolidationService,
)
from studio_finance.services.kpi import FinancialSummary, KpiAggregator, ProductionBreakdown
from studio_finance.services.ledger_query import LedgerQueryService, Movement, PayablesSummary
from studio_finance.services.payroll_dedup import DedupResult, deduplicate_payroll
from studio_finance.services.receivables import (
    QuoteReceivable,
    ReceivablesResolver,
    ReceivablesSummary,
)
from studio_finance.services.recurring import MaterializationResult, RecurringExpenseService
from studio_finance.services.reversal import PayrollReversalService, ReversalResult
from studio_finance.services.state_machine import (
    PaymentMethod,
    PaymentType,
    PayrollStateMachine,
    PayrollStatus,
)
from studio_finance.services.studios import get_studio_id
from studio_finance.services.windows import DateWindow, month_window, parse_month

__all__ = [
    "ConsolidationCommand",
    "ConsolidationResult",
    "DateWindow",
    "DedupResult",
    "FinancialSummary",
    "KpiAggregator",
    "LedgerQueryService",
    "MaterializationResult",
    "Movement",
    "PartialPaymentInput",
    "PayablesSummary",
    "PaymentMethod",
    "PaymentType",
    "PayrollConsolidationService",
    "PayrollReversalService",
    "PayrollStateMachine",
    "PayrollStatus",
    "ProductionBreakdown",
    "QuoteReceivable",
    "ReceivablesResolver",
    "ReceivablesSummary",
    "RecurringExpenseService",
    "ReversalResult",
    "get_studio_id",
    "deduplicate_payroll",
    "month_window",
    "parse_month",
]
