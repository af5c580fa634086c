"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from staff_payroll.calculators.types import RunType


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Generation schemas
# ============================================================================


class PreviewRequest(CamelModel):
    """Schema for computing a batch without storing it.

    Dates are validated by the period parser so that missing or malformed
    values are reported as an invalid period.
    """

    period_start: str | None = None
    period_end: str | None = None
    run_type: RunType = RunType.REGULAR


class GenerateRequest(PreviewRequest):
    """Schema for generating a payroll batch."""

    notes: str | None = None


class LineResponse(CamelModel):
    label: str
    code: str | None = None
    amount: Decimal
    taxable: bool | None = None


class TaxBreakdownResponse(CamelModel):
    income_tax: Decimal
    pension_contribution: Decimal
    other: Decimal
    total: Decimal


class PayrollRecordResponse(CamelModel):
    """Schema for a stored payroll record."""

    record_id: UUID
    staff_member_id: UUID
    staff_name: str | None = None
    period_start: date
    period_end: date
    run_type: str
    earnings: list[LineResponse]
    deductions: list[LineResponse]
    taxes: TaxBreakdownResponse
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    currency: str
    status: str
    payment_date: date | None = None
    notes: str | None = None
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class SkippedMemberResponse(CamelModel):
    staff_member_id: UUID
    reason: str


class GenerateResponse(CamelModel):
    """Schema for a generated batch."""

    count: int
    records: list[PayrollRecordResponse]
    skipped: list[SkippedMemberResponse] = Field(default_factory=list)


class DraftResponse(CamelModel):
    """Schema for a computed, unsaved record."""

    staff_member_id: UUID
    staff_name: str | None = None
    period_start: date
    period_end: date
    run_type: str
    earnings: list[LineResponse]
    deductions: list[LineResponse]
    taxes: TaxBreakdownResponse
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    currency: str


class PreviewResponse(CamelModel):
    count: int
    records: list[DraftResponse]
    skipped: list[SkippedMemberResponse] = Field(default_factory=list)


# ============================================================================
# Query schemas
# ============================================================================


class PeriodResponse(CamelModel):
    period_start: date
    period_end: date
    label: str


class StaffSummaryResponse(CamelModel):
    staff_member_id: UUID
    name: str
    external_id: str
    department: str | None = None


class PayslipResponse(PayrollRecordResponse):
    """Schema for one payslip with its staff summary."""

    staff: StaffSummaryResponse | None = None


class PayslipSummaryResponse(CamelModel):
    """Schema for a staff member's payslip history entry."""

    record_id: UUID
    period_start: date
    period_end: date
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    status: str
    created_at: datetime


# ============================================================================
# Status schemas
# ============================================================================


class PayRequest(CamelModel):
    payment_date: date | None = None


class VoidRequest(CamelModel):
    reason: str = Field(min_length=1)


# ============================================================================
# Common schemas
# ============================================================================


class ErrorResponse(CamelModel):
    """Schema for error response."""

    error: str
    code: str
    nothing_written: bool = True
