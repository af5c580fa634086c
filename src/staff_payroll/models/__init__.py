"""SQLAlchemy ORM models."""

from staff_payroll.models.base import Base
from staff_payroll.models.payroll import ImmutableRecordError, PayrollLine, PayrollRecord
from staff_payroll.models.staff import StaffMember

__all__ = [
    "Base",
    "ImmutableRecordError",
    "PayrollLine",
    "PayrollRecord",
    "StaffMember",
]
