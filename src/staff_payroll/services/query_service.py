"""Read-only payroll queries and payslip projections."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staff_payroll.models import PayrollRecord, StaffMember


@dataclass(frozen=True)
class PeriodSummary:
    period_start: date
    period_end: date
    label: str


@dataclass(frozen=True)
class StaffSummary:
    staff_member_id: UUID
    name: str
    external_id: str
    department: str | None


@dataclass(frozen=True)
class Payslip:
    """One record together with the staff member it belongs to."""

    record: PayrollRecord
    staff: StaffSummary | None


@dataclass(frozen=True)
class PayslipSummary:
    """Payslip-safe projection: no line detail, no audit fields."""

    record_id: UUID
    period_start: date
    period_end: date
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    status: str
    created_at: datetime


def format_period_label(period_start: date, period_end: date) -> str:
    """Human label for a pay period.

    Same month and year:  "Jan 1 – 31, 2025"
    Otherwise:            "Jan 16 – Feb 15, 2025"
    """
    start_label = f"{period_start:%b} {period_start.day}"
    if (period_start.year, period_start.month) == (period_end.year, period_end.month):
        return f"{start_label} – {period_end.day}, {period_end.year}"
    return f"{start_label} – {period_end:%b} {period_end.day}, {period_end.year}"


def _staff_summary(member: StaffMember | None) -> StaffSummary | None:
    if member is None:
        return None
    return StaffSummary(
        staff_member_id=member.staff_member_id,
        name=member.name,
        external_id=member.external_id,
        department=member.department,
    )


class PayslipQueryService:
    """Read-only access to stored payroll records.

    Missing data yields empty lists or None, never an error.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_records(self) -> list[PayrollRecord]:
        """Every record, newest first."""
        result = await self.session.execute(
            select(PayrollRecord)
            .options(selectinload(PayrollRecord.lines), selectinload(PayrollRecord.staff_member))
            .order_by(PayrollRecord.created_at.desc(), PayrollRecord.record_id)
        )
        return list(result.scalars().all())

    async def list_records_for_period(
        self, period_start: date, period_end: date
    ) -> list[PayrollRecord]:
        """Records whose period matches exactly, ordered by staff name."""
        result = await self.session.execute(
            select(PayrollRecord)
            .join(StaffMember, StaffMember.staff_member_id == PayrollRecord.staff_member_id)
            .where(
                PayrollRecord.period_start == period_start,
                PayrollRecord.period_end == period_end,
            )
            .options(selectinload(PayrollRecord.lines), selectinload(PayrollRecord.staff_member))
            .order_by(StaffMember.name, PayrollRecord.run_type)
        )
        return list(result.scalars().all())

    async def list_periods(self) -> list[PeriodSummary]:
        """Distinct periods, newest first, with a display label."""
        result = await self.session.execute(
            select(PayrollRecord.period_start, PayrollRecord.period_end)
            .distinct()
            .order_by(PayrollRecord.period_start.desc(), PayrollRecord.period_end.desc())
        )
        return [
            PeriodSummary(start, end, format_period_label(start, end))
            for start, end in result.all()
        ]

    async def get_payslip(self, record_id: UUID) -> Payslip | None:
        result = await self.session.execute(
            select(PayrollRecord)
            .where(PayrollRecord.record_id == record_id)
            .options(selectinload(PayrollRecord.lines), selectinload(PayrollRecord.staff_member))
        )
        record = result.scalar_one_or_none()
        if record is None:
            return None
        return Payslip(record=record, staff=_staff_summary(record.staff_member))

    async def list_staff_payslips(self, staff_member_id: UUID) -> list[PayslipSummary]:
        """Payslip history of one staff member, latest period first."""
        result = await self.session.execute(
            select(
                PayrollRecord.record_id,
                PayrollRecord.period_start,
                PayrollRecord.period_end,
                PayrollRecord.gross_pay,
                PayrollRecord.total_deductions,
                PayrollRecord.net_pay,
                PayrollRecord.status,
                PayrollRecord.created_at,
            )
            .where(PayrollRecord.staff_member_id == staff_member_id)
            .order_by(PayrollRecord.period_end.desc(), PayrollRecord.created_at.desc())
        )
        return [PayslipSummary(*row) for row in result.all()]
