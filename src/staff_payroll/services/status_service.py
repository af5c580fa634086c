"""Payroll record status service - approve, pay and void stored records."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staff_payroll.models import PayrollRecord
from staff_payroll.services.state_machine import (
    InvalidTransitionError,
    RecordStateMachine,
    RecordStatus,
)

logger = logging.getLogger(__name__)


class RecordNotFoundError(Exception):
    """Raised when a payroll record does not exist."""

    def __init__(self, record_id: UUID):
        self.record_id = record_id
        super().__init__(f"Payroll record {record_id} not found")


class PayrollStatusService:
    """Service for the record lifecycle.

    Only status, payment_date, notes and the updated_* audit fields change
    here; financial data stays as generated.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_record(self, record_id: UUID) -> PayrollRecord:
        result = await self.session.execute(
            select(PayrollRecord)
            .where(PayrollRecord.record_id == record_id)
            .options(selectinload(PayrollRecord.lines))
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    async def transition_status(
        self,
        record_id: UUID,
        to_status: str,
        actor_id: UUID | None = None,
        reason: str | None = None,
        payment_date: date | None = None,
    ) -> PayrollRecord:
        """Transition a record to a new status.

        Raises:
            RecordNotFoundError: If the record does not exist
            InvalidTransitionError: If the transition is not allowed
        """
        record = await self.get_record(record_id)
        from_status = record.status

        errors = RecordStateMachine.validate_record_for_transition(record, to_status, reason)
        if errors:
            raise InvalidTransitionError(from_status, to_status, "; ".join(errors))

        if to_status == RecordStatus.PAID:
            record.payment_date = payment_date or date.today()
        elif to_status == RecordStatus.VOID:
            note = f"VOID: {reason.strip()}"
            record.notes = f"{record.notes}\n{note}" if record.notes else note

        record.status = RecordStatus(to_status).value
        record.updated_by = actor_id
        await self.session.commit()

        logger.info("Payroll record %s: %s -> %s", record_id, from_status, record.status)
        return record

    async def approve(self, record_id: UUID, actor_id: UUID | None = None) -> PayrollRecord:
        return await self.transition_status(record_id, RecordStatus.APPROVED, actor_id)

    async def mark_paid(
        self,
        record_id: UUID,
        payment_date: date | None = None,
        actor_id: UUID | None = None,
    ) -> PayrollRecord:
        return await self.transition_status(
            record_id, RecordStatus.PAID, actor_id, payment_date=payment_date
        )

    async def void(
        self, record_id: UUID, reason: str, actor_id: UUID | None = None
    ) -> PayrollRecord:
        return await self.transition_status(record_id, RecordStatus.VOID, actor_id, reason=reason)
