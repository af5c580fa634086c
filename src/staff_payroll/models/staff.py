"""Staff member model - the roster as seen by the payroll core."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from staff_payroll.models.base import Base, TimestampMixin


class StaffMember(Base, TimestampMixin):
    """Staff member record, owned by the staff-administration system."""

    __tablename__ = "staff_member"

    staff_member_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    external_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    monthly_salary: Mapped[Decimal | None] = mapped_column(nullable=True)

    # [{"label": "Housing", "code": "HOUSING", "amount": "20000", "taxable": true}]
    allowances: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    # [{"label": "Salary Advance", "code": "ADVANCE", "amount": "5000"}]
    standing_deductions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
