"""Roster provider - the staff members eligible for payroll generation."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staff_payroll.calculators.types import ZERO, MonthlyAmount, StaffPayInput
from staff_payroll.models import StaffMember


class InvalidRosterDataError(Exception):
    """Raised when a roster entry cannot be turned into calculator input."""

    def __init__(self, staff_member_id: UUID, reason: str):
        self.staff_member_id = staff_member_id
        self.reason = reason
        super().__init__(f"Invalid roster data for staff member {staff_member_id}: {reason}")


class RosterProvider(Protocol):
    """Supplies the staff members to be paid.

    list_staff returns raw entries, each with a staff_member_id; to_input
    converts one entry and raises InvalidRosterDataError if it is malformed,
    so that a bad entry only costs that member. Entries without a positive
    salary are passed through; the generation service decides to skip them.
    """

    async def list_staff(self) -> Sequence[Any]: ...

    def to_input(self, entry: Any) -> StaffPayInput: ...


def staff_member_to_input(member: StaffMember) -> StaffPayInput:
    """Map a stored staff member to calculator input.

    Raises:
        InvalidRosterDataError: If the salary, allowances or standing
            deductions are malformed
    """
    salary = member.monthly_salary if member.monthly_salary is not None else ZERO
    try:
        return StaffPayInput(
            staff_member_id=member.staff_member_id,
            monthly_salary=Decimal(salary),
            name=member.name,
            allowances=tuple(MonthlyAmount.from_dict(a) for a in member.allowances or []),
            standing_deductions=tuple(
                MonthlyAmount.from_dict(d) for d in member.standing_deductions or []
            ),
        )
    except KeyError as exc:
        raise InvalidRosterDataError(member.staff_member_id, f"missing field {exc}") from exc
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise InvalidRosterDataError(member.staff_member_id, repr(exc)) from exc


class SqlRosterProvider:
    """Reads active staff members from the staff_member table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_staff(self) -> list[StaffMember]:
        result = await self.session.execute(
            select(StaffMember)
            .where(StaffMember.is_active.is_(True))
            .order_by(StaffMember.name, StaffMember.staff_member_id)
        )
        return list(result.scalars().all())

    def to_input(self, entry: StaffMember) -> StaffPayInput:
        return staff_member_to_input(entry)


class StaticRosterProvider:
    """In-memory roster, used for previews of hypothetical staff and in tests."""

    def __init__(self, staff: Sequence[StaffPayInput]):
        self._staff = list(staff)

    async def list_staff(self) -> list[StaffPayInput]:
        return list(self._staff)

    def to_input(self, entry: StaffPayInput) -> StaffPayInput:
        return entry
