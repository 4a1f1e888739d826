"""Studio finance read endpoints and recurring expenses."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, Query

from studio_finance.api.dependencies import Finance
from studio_finance.api.errors import unwrap
from studio_finance.api.schemas import (
    ErrorResponse,
    FinancialSummaryResponse,
    MaterializeRequest,
    MaterializeResponse,
    MovementListResponse,
    MovementResponse,
    PayablesResponse,
    ProductionBreakdownResponse,
    ReceivablesResponse,
    RecurringExpenseListResponse,
    RecurringExpenseResponse,
)
from studio_finance.services.windows import DateWindow, month_window, parse_month

router = APIRouter(prefix="/studios/{slug}/finance", tags=["finance"])

Slug = Annotated[str, Path(min_length=1)]
Month = Annotated[str | None, Query(pattern=r"^\d{4}-\d{2}$")]


def _window(month: str | None) -> DateWindow:
    """Window for a 'YYYY-MM' query value, the current month when omitted."""
    if month is None:
        return month_window(date.today())
    return parse_month(month)


@router.get(
    "/kpis",
    response_model=FinancialSummaryResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def get_kpis(
    finance: Finance,
    slug: Slug,
    month: Month = None,
) -> FinancialSummaryResponse:
    """Financial KPIs of one month."""
    window = _window(month)
    summary = unwrap(await finance.financial_summary(slug, window))
    return FinancialSummaryResponse(
        start=window.start,
        end=window.end,
        income=summary.income,
        expense=summary.expense,
        operating_expense=summary.operating_expense,
        payroll_expense=summary.payroll_expense,
        profit=summary.profit,
        receivables=summary.receivables,
        payables=summary.payables,
        production=ProductionBreakdownResponse.model_validate(summary.production),
    )


@router.get(
    "/receivables",
    response_model=ReceivablesResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_receivables(finance: Finance, slug: Slug) -> ReceivablesResponse:
    """Outstanding balance per approved quote."""
    receivables = unwrap(await finance.receivables(slug))
    return ReceivablesResponse.model_validate(receivables)


@router.get(
    "/payables",
    response_model=PayablesResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payables(finance: Finance, slug: Slug) -> PayablesResponse:
    """Pending payroll owed to crew."""
    payables = unwrap(await finance.payables(slug))
    return PayablesResponse.model_validate(payables)


@router.get(
    "/movements",
    response_model=MovementListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_movements(
    finance: Finance,
    slug: Slug,
    month: Month = None,
) -> MovementListResponse:
    """Income, payroll and expenses of one month, newest first."""
    movements = unwrap(await finance.movements(slug, _window(month)))
    return MovementListResponse(
        items=[MovementResponse.model_validate(m) for m in movements],
        total=len(movements),
    )


@router.get(
    "/recurring-expenses",
    response_model=RecurringExpenseListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_recurring_expenses(
    finance: Finance, slug: Slug
) -> RecurringExpenseListResponse:
    """Recurring expense and fixed salary definitions, newest first."""
    definitions = unwrap(await finance.recurring_expenses(slug))
    return RecurringExpenseListResponse(
        items=[RecurringExpenseResponse.model_validate(d) for d in definitions],
        total=len(definitions),
    )


@router.post(
    "/recurring-expenses/materialize",
    response_model=MaterializeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def materialize_recurring_expenses(
    finance: Finance,
    slug: Slug,
    payload: MaterializeRequest,
) -> MaterializeResponse:
    """Create the expense instances due in a month (idempotent)."""
    outcome = unwrap(
        await finance.materialize_recurring_expenses(slug, parse_month(payload.month))
    )
    return MaterializeResponse.model_validate(outcome)
