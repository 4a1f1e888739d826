"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# KPI schemas
# ============================================================================


class ProductionBreakdownResponse(BaseModel):
    """Cost structure of approved quotes."""

    model_config = ConfigDict(from_attributes=True)

    revenue: Decimal
    production_cost: Decimal
    operating_expense: Decimal
    margin: Decimal
    margin_percent: Decimal


class FinancialSummaryResponse(BaseModel):
    """Schema for the KPI summary of one window."""

    start: date
    end: date
    income: Decimal
    expense: Decimal
    operating_expense: Decimal
    payroll_expense: Decimal
    profit: Decimal
    receivables: Decimal
    payables: Decimal
    production: ProductionBreakdownResponse


# ============================================================================
# Receivable / payable / movement schemas
# ============================================================================


class ReceivableResponse(BaseModel):
    """Outstanding balance of one approved quote."""

    model_config = ConfigDict(from_attributes=True)

    quote_id: UUID
    promise_id: UUID
    concept: str
    effective_total: Decimal
    attributed: Decimal
    outstanding: Decimal
    created_at: datetime


class ReceivablesResponse(BaseModel):
    """Schema for the receivables listing."""

    model_config = ConfigDict(from_attributes=True)

    items: list[ReceivableResponse]
    total: Decimal
    promise_count: int
    quote_count: int
    approved_total: Decimal
    attributed_total: Decimal


class PayrollRecordResponse(BaseModel):
    """Schema for a payroll record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    crew_member_id: UUID
    concept: str | None = None
    gross_amount: Decimal
    net_amount: Decimal
    total_discounts: Decimal
    status: str
    payment_type: str | None = None
    consolidated_payment_id: UUID | None = None
    assignment_date: datetime | None = None
    payment_date: datetime | None = None
    paid_by: UUID | None = None
    payment_method: str | None = None
    created_at: datetime


class PayablesResponse(BaseModel):
    """Schema for pending payroll owed to crew."""

    model_config = ConfigDict(from_attributes=True)

    items: list[PayrollRecordResponse]
    total: Decimal


class MovementResponse(BaseModel):
    """One line of the movements listing."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: datetime
    source: str
    concept: str
    category: str
    amount: Decimal


class MovementListResponse(BaseModel):
    """Schema for the movements listing."""

    items: list[MovementResponse]
    total: int


# ============================================================================
# Payroll settlement schemas
# ============================================================================


class PartialPaymentSchema(BaseModel):
    """One slice of a split payment."""

    model_config = ConfigDict(from_attributes=True)

    method: str
    amount: Decimal


class ConsolidationCreate(BaseModel):
    """Schema for consolidating pending payroll records."""

    crew_member_id: UUID
    payroll_ids: list[UUID]
    discount: Decimal = Decimal("0")
    partial_payments: list[PartialPaymentSchema] = Field(default_factory=list)
    payment_method: str | None = None
    concept: str | None = None
    idempotency_key: str | None = None


class ConsolidationResponse(BaseModel):
    """Schema for a consolidation result."""

    model_config = ConfigDict(from_attributes=True)

    consolidated_payment_id: UUID
    is_new: bool
    record_ids: list[UUID]
    gross_amount: Decimal
    net_amount: Decimal
    discount: Decimal
    payment_date: datetime
    partial_payments: list[PartialPaymentSchema]


class SettleRequest(BaseModel):
    """Schema for settling a single payroll record."""

    payment_method: str | None = None


class ReversalResponse(BaseModel):
    """Schema for reversal and cancel results."""

    model_config = ConfigDict(from_attributes=True)

    reversed_id: UUID
    restored_ids: list[UUID]
    restored_net_amount: Decimal
    deleted: bool


# ============================================================================
# Recurring expense schemas
# ============================================================================


class RecurringExpenseResponse(BaseModel):
    """Schema for a recurring expense definition."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    amount: Decimal
    category: str
    frequency: str
    charge_day: int
    is_active: bool
    crew_member_id: UUID | None = None
    created_at: datetime


class RecurringExpenseListResponse(BaseModel):
    """Schema for listing recurring expense definitions."""

    items: list[RecurringExpenseResponse]
    total: int


class MaterializeRequest(BaseModel):
    """Schema for materialising recurring expenses of one month."""

    month: str = Field(pattern=r"^\d{4}-\d{2}$")


class ExpenseResponse(BaseModel):
    """Schema for an expense."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    concept: str
    amount: Decimal
    category: str
    date: datetime | None = None
    crew_member_id: UUID | None = None
    recurring_expense_id: UUID | None = None


class MaterializeResponse(BaseModel):
    """Schema for a materialisation result."""

    model_config = ConfigDict(from_attributes=True)

    created: list[ExpenseResponse]
    skipped: int
