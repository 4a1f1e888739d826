"""Payroll settlement, consolidation and reversal endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from studio_finance.api.dependencies import Finance
from studio_finance.api.errors import unwrap
from studio_finance.api.schemas import (
    ConsolidationCreate,
    ConsolidationResponse,
    ErrorResponse,
    PayrollRecordResponse,
    ReversalResponse,
    SettleRequest,
)
from studio_finance.services.consolidation import PartialPaymentInput

router = APIRouter(prefix="/studios/{slug}/finance/payroll", tags=["payroll"])

Slug = Annotated[str, Path(min_length=1)]

CONFLICT_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ============================================================================
# Consolidation
# ============================================================================


@router.post(
    "/consolidations",
    response_model=ConsolidationResponse,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT_RESPONSES,
)
async def create_consolidation(
    finance: Finance,
    slug: Slug,
    payload: ConsolidationCreate,
) -> ConsolidationResponse:
    """Settle pending records of one crew member with a single payment.

    Replaying an idempotency key returns the original consolidation with
    is_new=false.
    """
    result = unwrap(
        await finance.consolidate_payroll(
            slug,
            crew_member_id=payload.crew_member_id,
            payroll_ids=payload.payroll_ids,
            discount=payload.discount,
            partial_payments=[
                PartialPaymentInput(method=p.method, amount=p.amount)
                for p in payload.partial_payments
            ],
            payment_method=payload.payment_method,
            concept=payload.concept,
            idempotency_key=payload.idempotency_key,
        )
    )
    return ConsolidationResponse.model_validate(result)


@router.delete(
    "/consolidations/{consolidated_id}",
    response_model=ReversalResponse,
    responses=CONFLICT_RESPONSES,
)
async def reverse_consolidation(
    finance: Finance,
    slug: Slug,
    consolidated_id: Annotated[UUID, Path()],
) -> ReversalResponse:
    """Delete a consolidated payment and reopen the records it settled."""
    result = unwrap(await finance.reverse_consolidation(slug, consolidated_id))
    return ReversalResponse.model_validate(result)


# ============================================================================
# Single records
# ============================================================================


@router.post(
    "/{payroll_id}/settle",
    response_model=PayrollRecordResponse,
    responses=CONFLICT_RESPONSES,
)
async def settle_payroll(
    finance: Finance,
    slug: Slug,
    payroll_id: Annotated[UUID, Path()],
    payload: SettleRequest | None = None,
) -> PayrollRecordResponse:
    """Mark one pending record as paid."""
    method = payload.payment_method if payload else None
    record = unwrap(await finance.settle_payroll(slug, payroll_id, method))
    return PayrollRecordResponse.model_validate(record)


@router.post(
    "/{payroll_id}/reverse",
    response_model=ReversalResponse,
    responses=CONFLICT_RESPONSES,
)
async def reverse_payroll(
    finance: Finance,
    slug: Slug,
    payroll_id: Annotated[UUID, Path()],
) -> ReversalResponse:
    """Reopen an individually settled record."""
    result = unwrap(await finance.reverse_payroll(slug, payroll_id))
    return ReversalResponse.model_validate(result)


@router.delete(
    "/{payroll_id}",
    response_model=ReversalResponse,
    responses=CONFLICT_RESPONSES,
)
async def cancel_payroll(
    finance: Finance,
    slug: Slug,
    payroll_id: Annotated[UUID, Path()],
) -> ReversalResponse:
    """Delete a standalone payroll record."""
    result = unwrap(await finance.cancel_payroll(slug, payroll_id))
    return ReversalResponse.model_validate(result)
