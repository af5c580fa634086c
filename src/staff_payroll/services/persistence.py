"""Persistence gateway - all-or-nothing storage of generated payroll batches."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from staff_payroll.calculators.types import LineCandidate, PayrollDraft
from staff_payroll.models import PayrollLine, PayrollRecord
from staff_payroll.services.state_machine import RecordStatus

logger = logging.getLogger(__name__)

RecordIdentity = tuple[UUID, date, date, str]

# Postgres reports the constraint name, SQLite the constrained columns
_PERIOD_CONFLICT_MARKERS = (
    "uq_payroll_staff_period_run",
    "UNIQUE constraint failed: payroll_record.staff_member_id",
)


class DuplicatePeriodError(Exception):
    """Raised when a record already exists for (staff member, period, run type).

    The whole batch is rejected; nothing is written.
    """

    nothing_written = True

    def __init__(self, conflicts: list[RecordIdentity]):
        self.conflicts = conflicts
        if conflicts:
            _, start, end, run_type = conflicts[0]
            detail = f"{run_type} payroll for {start} to {end}"
        else:
            detail = "payroll for this period"
        super().__init__(
            f"{detail} already exists for {len(conflicts) or 'some'} staff member(s); "
            "nothing was written"
        )


class PersistenceFailureError(Exception):
    """Raised when the storage layer fails for a reason other than uniqueness."""

    def __init__(self, reason: str, nothing_written: bool = True):
        self.reason = reason
        self.nothing_written = nothing_written
        super().__init__(f"Failed to store payroll batch: {reason}")


class PayrollGateway:
    """Stores payroll batches atomically.

    Key invariants:
    1. One record per (staff member, period_start, period_end, run_type),
       enforced by the uq_payroll_staff_period_run constraint
    2. A batch is checked for conflicts before any insert
    3. The batch is inserted in a single transaction; any failure rolls it
       back completely
    4. A concurrent writer that slips past the pre-check trips the
       constraint and is reported as a duplicate
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_conflicts(self, identities: Iterable[RecordIdentity]) -> list[RecordIdentity]:
        """Return the identities that already have a stored record."""
        wanted = set(identities)
        if not wanted:
            return []

        staff_ids = {identity[0] for identity in wanted}
        result = await self.session.execute(
            select(
                PayrollRecord.staff_member_id,
                PayrollRecord.period_start,
                PayrollRecord.period_end,
                PayrollRecord.run_type,
            ).where(PayrollRecord.staff_member_id.in_(staff_ids))
        )
        existing = {tuple(row) for row in result.all()}
        return sorted(
            (identity for identity in wanted if identity in existing),
            key=lambda i: (str(i[0]), i[1], i[2], i[3]),
        )

    async def insert_batch(
        self,
        drafts: list[PayrollDraft],
        actor_id: UUID | None = None,
        notes: str | None = None,
    ) -> list[PayrollRecord]:
        """Persist every draft or none of them.

        Raises:
            DuplicatePeriodError: If any draft's identity already exists
            PersistenceFailureError: On any other storage fault
        """
        identities = [draft.identity for draft in drafts]

        # Same identity twice inside the batch
        seen: set[RecordIdentity] = set()
        repeated = [i for i in identities if i in seen or seen.add(i)]
        if repeated:
            raise DuplicatePeriodError(repeated)

        try:
            conflicts = await self.find_conflicts(identities)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Uniqueness pre-check failed")
            raise PersistenceFailureError(str(exc)) from exc
        if conflicts:
            await self.session.rollback()
            raise DuplicatePeriodError(conflicts)

        records = [self._to_record(draft, actor_id, notes) for draft in drafts]
        try:
            self.session.add_all(records)
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if not is_period_conflict(exc):
                logger.exception("Integrity violation while storing payroll batch")
                raise PersistenceFailureError(str(exc.orig)) from exc
            logger.warning("Uniqueness constraint tripped while storing batch: %s", exc.orig)
            raise DuplicatePeriodError(identities) from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Failed to store payroll batch of %d record(s)", len(records))
            raise PersistenceFailureError(str(exc)) from exc

        return records

    @staticmethod
    def _to_record(
        draft: PayrollDraft,
        actor_id: UUID | None,
        notes: str | None,
    ) -> PayrollRecord:
        taxes = draft.tax_breakdown
        lines = [
            _to_line(position, line)
            for position, line in enumerate([*draft.earnings, *draft.deductions])
        ]
        return PayrollRecord(
            staff_member_id=draft.staff_member_id,
            period_start=draft.period_start,
            period_end=draft.period_end,
            run_type=draft.run_type.value,
            gross_pay=draft.gross_pay,
            total_deductions=draft.total_deductions,
            net_pay=draft.net_pay,
            income_tax=taxes.income_tax,
            pension_contribution=taxes.pension_contribution,
            other_tax=taxes.other,
            tax_total=taxes.total,
            currency=draft.currency,
            status=RecordStatus.DRAFT.value,
            notes=notes,
            created_by=actor_id,
            updated_by=actor_id,
            lines=lines,
        )


def _to_line(position: int, line: LineCandidate) -> PayrollLine:
    return PayrollLine(
        position=position,
        line_type=line.line_type.value,
        label=line.label,
        code=line.code,
        amount=line.amount,
        taxable=line.taxable,
    )


def is_period_conflict(exc: IntegrityError) -> bool:
    """True if exc is the (staff member, period, run type) uniqueness violation."""
    message = str(exc.orig)
    return any(marker in message for marker in _PERIOD_CONFLICT_MARKERS)
