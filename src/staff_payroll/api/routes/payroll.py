"""Payroll API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from staff_payroll.api.dependencies import ActorId, DbSession, Policy, Strategy
from staff_payroll.api.schemas import (
    DraftResponse,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    LineResponse,
    PayRequest,
    PayrollRecordResponse,
    PayslipResponse,
    PayslipSummaryResponse,
    PeriodResponse,
    PreviewRequest,
    PreviewResponse,
    SkippedMemberResponse,
    StaffSummaryResponse,
    TaxBreakdownResponse,
    VoidRequest,
)
from staff_payroll.calculators.proration import parse_period
from staff_payroll.calculators.types import LineCandidate, PayrollDraft, TaxBreakdown
from staff_payroll.models import PayrollLine, PayrollRecord
from staff_payroll.services.generation_service import PayrollGenerationService, SkippedMember
from staff_payroll.services.query_service import PayslipQueryService
from staff_payroll.services.status_service import PayrollStatusService, RecordNotFoundError

router = APIRouter(prefix="/payroll", tags=["payroll"])


# ============================================================================
# Response builders
# ============================================================================


def _line_response(line: LineCandidate | PayrollLine) -> LineResponse:
    return LineResponse(**line.to_dict())


def _taxes_response(taxes: TaxBreakdown) -> TaxBreakdownResponse:
    return TaxBreakdownResponse(
        income_tax=taxes.income_tax,
        pension_contribution=taxes.pension_contribution,
        other=taxes.other,
        total=taxes.total,
    )


def _record_fields(record: PayrollRecord, staff_name: str | None) -> dict:
    return dict(
        record_id=record.record_id,
        staff_member_id=record.staff_member_id,
        staff_name=staff_name,
        period_start=record.period_start,
        period_end=record.period_end,
        run_type=record.run_type,
        earnings=[_line_response(line) for line in record.earnings],
        deductions=[_line_response(line) for line in record.deductions],
        taxes=_taxes_response(record.tax_breakdown),
        gross_pay=record.gross_pay,
        total_deductions=record.total_deductions,
        net_pay=record.net_pay,
        currency=record.currency,
        status=record.status,
        payment_date=record.payment_date,
        notes=record.notes,
        created_by=record.created_by,
        updated_by=record.updated_by,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def record_response(record: PayrollRecord, staff_name: str | None = None) -> PayrollRecordResponse:
    return PayrollRecordResponse(**_record_fields(record, staff_name))


def _loaded_staff_name(record: PayrollRecord) -> str | None:
    """Staff name of a record whose staff_member relationship was eager-loaded."""
    return record.staff_member.name if record.staff_member is not None else None


def draft_response(draft: PayrollDraft) -> DraftResponse:
    return DraftResponse(
        staff_member_id=draft.staff_member_id,
        staff_name=draft.staff_name or None,
        period_start=draft.period_start,
        period_end=draft.period_end,
        run_type=draft.run_type.value,
        earnings=[_line_response(line) for line in draft.earnings],
        deductions=[_line_response(line) for line in draft.deductions],
        taxes=_taxes_response(draft.tax_breakdown),
        gross_pay=draft.gross_pay,
        total_deductions=draft.total_deductions,
        net_pay=draft.net_pay,
        currency=draft.currency,
    )


def _skipped_response(skipped: list[SkippedMember]) -> list[SkippedMemberResponse]:
    return [
        SkippedMemberResponse(staff_member_id=s.staff_member_id, reason=s.reason)
        for s in skipped
    ]


# ============================================================================
# Generation
# ============================================================================


@router.post(
    "/generate",
    response_model=GenerateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_payroll(
    db: DbSession,
    policy: Policy,
    strategy: Strategy,
    actor_id: ActorId,
    payload: GenerateRequest,
) -> GenerateResponse:
    """Generate and store payroll records for every eligible staff member."""
    service = PayrollGenerationService(db, policy, strategy)
    result = await service.generate(
        payload.period_start,
        payload.period_end,
        run_type=payload.run_type,
        actor_id=actor_id,
        notes=payload.notes,
    )
    return GenerateResponse(
        count=result.count,
        records=[
            record_response(r, result.staff_names.get(r.staff_member_id))
            for r in result.records
        ],
        skipped=_skipped_response(result.skipped),
    )


@router.post(
    "/preview",
    response_model=PreviewResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def preview_payroll(
    db: DbSession,
    policy: Policy,
    strategy: Strategy,
    payload: PreviewRequest,
) -> PreviewResponse:
    """Compute a batch exactly as generation would, without storing it."""
    service = PayrollGenerationService(db, policy, strategy)
    result = await service.preview(
        payload.period_start, payload.period_end, run_type=payload.run_type
    )
    return PreviewResponse(
        count=result.count,
        records=[draft_response(d) for d in result.drafts],
        skipped=_skipped_response(result.skipped),
    )


# ============================================================================
# Queries
# ============================================================================


@router.get("", response_model=list[PayrollRecordResponse])
async def list_payroll_records(db: DbSession) -> list[PayrollRecordResponse]:
    """List every payroll record, newest first."""
    records = await PayslipQueryService(db).list_records()
    return [record_response(r, _loaded_staff_name(r)) for r in records]


@router.get(
    "/by-period",
    response_model=list[PayrollRecordResponse],
    responses={400: {"model": ErrorResponse}},
)
async def list_payroll_for_period(
    db: DbSession,
    period_start: Annotated[str | None, Query(alias="periodStart")] = None,
    period_end: Annotated[str | None, Query(alias="periodEnd")] = None,
) -> list[PayrollRecordResponse]:
    """List the records of one pay period, ordered by staff name."""
    start, end = parse_period(period_start, period_end)
    records = await PayslipQueryService(db).list_records_for_period(start, end)
    return [record_response(r, _loaded_staff_name(r)) for r in records]


@router.get("/periods", response_model=list[PeriodResponse])
async def list_payroll_periods(db: DbSession) -> list[PeriodResponse]:
    """List distinct pay periods, newest first."""
    periods = await PayslipQueryService(db).list_periods()
    return [
        PeriodResponse(period_start=p.period_start, period_end=p.period_end, label=p.label)
        for p in periods
    ]


@router.get("/staff/{staff_member_id}", response_model=list[PayslipSummaryResponse])
async def list_staff_payslips(
    db: DbSession,
    staff_member_id: Annotated[UUID, Path()],
) -> list[PayslipSummaryResponse]:
    """Payslip history of one staff member, latest period first."""
    payslips = await PayslipQueryService(db).list_staff_payslips(staff_member_id)
    return [PayslipSummaryResponse.model_validate(p) for p in payslips]


@router.get(
    "/{record_id}",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payslip(
    db: DbSession,
    record_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Get one payslip with the staff member's summary."""
    payslip = await PayslipQueryService(db).get_payslip(record_id)
    if payslip is None:
        raise RecordNotFoundError(record_id)

    staff = None
    if payslip.staff is not None:
        staff = StaffSummaryResponse.model_validate(payslip.staff)
    return PayslipResponse(
        **_record_fields(payslip.record, payslip.staff.name if payslip.staff else None),
        staff=staff,
    )


# ============================================================================
# Status lifecycle
# ============================================================================


@router.post(
    "/{record_id}/approve",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_record(
    db: DbSession,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
) -> PayrollRecordResponse:
    """Approve a draft record."""
    record = await PayrollStatusService(db).approve(record_id, actor_id=actor_id)
    return record_response(record)


@router.post(
    "/{record_id}/pay",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def pay_record(
    db: DbSession,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
    payload: PayRequest | None = None,
) -> PayrollRecordResponse:
    """Mark an approved record as paid."""
    payment_date = payload.payment_date if payload else None
    record = await PayrollStatusService(db).mark_paid(
        record_id, payment_date=payment_date, actor_id=actor_id
    )
    return record_response(record)


@router.post(
    "/{record_id}/void",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def void_record(
    db: DbSession,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
    payload: VoidRequest,
) -> PayrollRecordResponse:
    """Void a draft or approved record. A reason is required."""
    record = await PayrollStatusService(db).void(record_id, payload.reason, actor_id=actor_id)
    return record_response(record)
