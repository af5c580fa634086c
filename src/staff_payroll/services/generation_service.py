"""Payroll generation service - builds and stores one batch per pay period."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from staff_payroll.calculators.proration import (
    InvalidSalaryError,
    ProrationStrategy,
    parse_period,
)
from staff_payroll.calculators.record_builder import PayrollRecordBuilder, RecordValidationError
from staff_payroll.calculators.types import PayrollDraft, RunType
from staff_payroll.config import StatutoryPolicy
from staff_payroll.models import PayrollRecord
from staff_payroll.services.persistence import PayrollGateway
from staff_payroll.services.roster import (
    InvalidRosterDataError,
    RosterProvider,
    SqlRosterProvider,
)

logger = logging.getLogger(__name__)


class EmptyRosterError(Exception):
    """Raised when no staff member is eligible for the requested period."""

    nothing_written = True

    def __init__(self, period_start: date, period_end: date, skipped: int = 0):
        self.period_start = period_start
        self.period_end = period_end
        self.skipped = skipped
        msg = f"No eligible staff members for payroll period {period_start} to {period_end}"
        if skipped:
            msg += f" ({skipped} skipped for invalid salary or roster data)"
        super().__init__(msg)


@dataclass
class SkippedMember:
    staff_member_id: UUID
    reason: str


@dataclass
class GenerationResult:
    """Outcome of one generation request."""

    count: int
    records: list[PayrollRecord] = field(default_factory=list)
    skipped: list[SkippedMember] = field(default_factory=list)
    staff_names: dict[UUID, str] = field(default_factory=dict)


@dataclass
class PreviewResult:
    count: int
    drafts: list[PayrollDraft] = field(default_factory=list)
    skipped: list[SkippedMember] = field(default_factory=list)


class PayrollGenerationService:
    """Service for generating payroll batches.

    Operations:
    - generate: validate, compute per staff member, store the batch atomically
    - preview: the same computation without storing anything
    """

    def __init__(
        self,
        session: AsyncSession,
        policy: StatutoryPolicy,
        strategy: ProrationStrategy = ProrationStrategy.PERIOD_END_MONTH,
        roster: RosterProvider | None = None,
    ):
        self.session = session
        self.builder = PayrollRecordBuilder(policy, strategy)
        self.roster = roster if roster is not None else SqlRosterProvider(session)
        self.gateway = PayrollGateway(session)

    async def compute_drafts(
        self,
        period_start: Any,
        period_end: Any,
        run_type: RunType | str = RunType.REGULAR,
    ) -> tuple[list[PayrollDraft], list[SkippedMember]]:
        """Build drafts for every eligible staff member.

        Raises:
            InvalidPeriodError: Before any computation, if the period is malformed
            EmptyRosterError: If no staff member produced a record
        """
        start, end = parse_period(period_start, period_end)
        run_type = RunType(run_type)

        staff = await self.roster.list_staff()

        drafts: list[PayrollDraft] = []
        skipped: list[SkippedMember] = []
        for entry in staff:
            staff_member_id = entry.staff_member_id
            try:
                member = self.roster.to_input(entry)
                drafts.append(self.builder.build(member, start, end, run_type))
            except InvalidRosterDataError as exc:
                logger.warning("Skipping staff member %s: %s", staff_member_id, exc)
                skipped.append(SkippedMember(staff_member_id, "invalid_roster_data"))
            except InvalidSalaryError as exc:
                logger.warning("Skipping staff member %s: %s", staff_member_id, exc)
                skipped.append(SkippedMember(staff_member_id, "invalid_salary"))
            except RecordValidationError as exc:
                logger.warning("Skipping staff member %s: %s", staff_member_id, exc)
                skipped.append(SkippedMember(staff_member_id, "validation_failed"))

        if not drafts:
            raise EmptyRosterError(start, end, skipped=len(skipped))

        return drafts, skipped

    async def generate(
        self,
        period_start: Any,
        period_end: Any,
        run_type: RunType | str = RunType.REGULAR,
        actor_id: UUID | None = None,
        notes: str | None = None,
    ) -> GenerationResult:
        """Generate and store payroll records for a period.

        Raises:
            InvalidPeriodError: If the period is malformed
            EmptyRosterError: If no staff member is eligible
            DuplicatePeriodError: If any record for the period already exists
            PersistenceFailureError: On any other storage fault
        """
        drafts, skipped = await self.compute_drafts(period_start, period_end, run_type)
        records = await self.gateway.insert_batch(drafts, actor_id=actor_id, notes=notes)

        first = drafts[0]
        logger.info(
            "Generated %d %s payroll record(s) for %s to %s (%d skipped)",
            len(records),
            first.run_type.value,
            first.period_start,
            first.period_end,
            len(skipped),
        )
        return GenerationResult(
            count=len(records),
            records=records,
            skipped=skipped,
            staff_names={d.staff_member_id: d.staff_name for d in drafts},
        )

    async def preview(
        self,
        period_start: Any,
        period_end: Any,
        run_type: RunType | str = RunType.REGULAR,
    ) -> PreviewResult:
        """Compute the batch exactly as generate would, without storing it."""
        drafts, skipped = await self.compute_drafts(period_start, period_end, run_type)
        return PreviewResult(count=len(drafts), drafts=drafts, skipped=skipped)
