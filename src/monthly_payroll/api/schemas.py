"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Period schemas
# ============================================================================


class PeriodResponse(BaseModel):
    """Schema for payroll period response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    year: int
    month: int
    status: str
    created_at: datetime | None = None
    locked_at: datetime | None = None
    locked_by: str | None = None


class PeriodListResponse(BaseModel):
    """Schema for listing periods."""

    items: list[PeriodResponse]
    total: int


# ============================================================================
# Summary schemas
# ============================================================================


class PayslipResponse(BaseModel):
    """Per-employee payslip figures."""

    model_config = ConfigDict(from_attributes=True)

    employee_email: str
    employee_name: str
    base: Decimal
    manual_earnings: Decimal
    manual_deductions: Decimal
    epf_employee: Decimal
    socso_employee: Decimal
    eis_employee: Decimal
    pcb: Decimal
    epf_employer: Decimal
    socso_employer: Decimal
    eis_employer: Decimal
    hrd_employer: Decimal
    gross: Decimal
    employee_deductions: Decimal
    net: Decimal
    employer_cost: Decimal


class TotalsResponse(BaseModel):
    """Company-wide totals."""

    model_config = ConfigDict(from_attributes=True)

    employee_count: int
    base: Decimal
    manual_earnings: Decimal
    manual_deductions: Decimal
    epf_employee: Decimal
    socso_employee: Decimal
    eis_employee: Decimal
    pcb: Decimal
    epf_employer: Decimal
    socso_employer: Decimal
    eis_employer: Decimal
    hrd_employer: Decimal
    gross: Decimal
    employee_deductions: Decimal
    net: Decimal
    employer_cost: Decimal


class SummaryResponse(BaseModel):
    """Schema for build/finalize/summary responses."""

    model_config = ConfigDict(from_attributes=True)

    period_id: UUID
    year: int
    month: int
    status: str
    employees: list[PayslipResponse]
    totals: TotalsResponse


# ============================================================================
# Line item schemas
# ============================================================================


class PayrollItemResponse(BaseModel):
    """Schema for a computed payroll line."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_email: str
    item_type: str
    code: str
    label: str
    amount: Decimal
    position: int
    source_item_id: UUID | None = None
    line_hash: str


class PayrollItemListResponse(BaseModel):
    """Schema for listing payroll lines."""

    items: list[PayrollItemResponse]
    total: int


# ============================================================================
# Manual item schemas
# ============================================================================


class ManualItemCreate(BaseModel):
    """Schema for adding one manual earning or deduction."""

    employee_email: str
    kind: str
    amount: Decimal
    code: str | None = None
    label: str | None = None


class ManualItemDraftRequest(BaseModel):
    """One replacement item in a replace-by-code request."""

    kind: str
    amount: Decimal
    code: str | None = None
    label: str | None = None


class ManualItemReplace(BaseModel):
    """Schema for replacing an employee's items by code."""

    codes: list[str] = Field(min_length=1)
    items: list[ManualItemDraftRequest] = Field(default_factory=list)


class ManualItemResponse(BaseModel):
    """Schema for manual item response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_email: str
    period_id: UUID
    kind: str
    code: str
    label: str | None = None
    amount: Decimal
    created_by: str | None = None
    created_at: datetime | None = None


class ManualItemListResponse(BaseModel):
    """Schema for listing manual items."""

    items: list[ManualItemResponse]
    total: int


# ============================================================================
# Adjustment sheet schemas
# ============================================================================


class AdjustmentRowRequest(BaseModel):
    """One commission/advance row."""

    employee_email: str
    commission: Decimal = Decimal("0")
    advance: Decimal = Decimal("0")


class AdjustmentSaveRequest(BaseModel):
    """Schema for saving the adjustment sheet."""

    rows: list[AdjustmentRowRequest]


class AdjustmentSheetRowResponse(BaseModel):
    """Current commission/advance for one employee."""

    model_config = ConfigDict(from_attributes=True)

    employee_email: str
    employee_name: str
    commission: Decimal
    advance: Decimal


class AdjustmentSheetResponse(BaseModel):
    """Schema for the adjustment sheet."""

    year: int
    month: int
    rows: list[AdjustmentSheetRowResponse]


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
