"""Payroll record and line models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from staff_payroll.calculators.types import LineType, TaxBreakdown
from staff_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from staff_payroll.models.staff import StaffMember


class ImmutableRecordError(Exception):
    """Raised when a financial field of a stored payroll record is changed."""

    def __init__(self, record_id: UUID | None, field_name: str):
        self.record_id = record_id
        self.field_name = field_name
        super().__init__(
            f"Payroll record {record_id} is immutable: cannot change '{field_name}'. "
            "Void the record and regenerate instead."
        )


class PayrollRecord(Base, TimestampMixin):
    """One payroll record per staff member per pay period per run type."""

    __tablename__ = "payroll_record"

    record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    staff_member_id: Mapped[UUID] = mapped_column(
        ForeignKey("staff_member.staff_member_id", ondelete="RESTRICT"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    run_type: Mapped[str] = mapped_column(String, nullable=False, default="REGULAR")

    # Totals
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)

    # Tax breakdown
    income_tax: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    pension_contribution: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    other_tax: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tax_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="KES")
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    updated_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "staff_member_id",
            "period_start",
            "period_end",
            "run_type",
            name="uq_payroll_staff_period_run",
        ),
        CheckConstraint("period_end >= period_start", name="payroll_record_period_check"),
        CheckConstraint(
            "run_type IN ('REGULAR', 'BONUS', 'ADJUSTMENT', 'TERMINATION', 'OTHER')",
            name="payroll_record_run_type_check",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'APPROVED', 'PAID', 'VOID')",
            name="payroll_record_status_check",
        ),
        CheckConstraint(
            "gross_pay >= 0 AND total_deductions >= 0 AND net_pay >= 0 "
            "AND income_tax >= 0 AND pension_contribution >= 0 "
            "AND other_tax >= 0 AND tax_total >= 0",
            name="payroll_record_amounts_non_negative",
        ),
        Index("ix_payroll_record_period", "period_start", "period_end"),
        Index("ix_payroll_record_staff_period_end", "staff_member_id", "period_end"),
    )

    # Relationships
    staff_member: Mapped[StaffMember] = relationship()
    lines: Mapped[list[PayrollLine]] = relationship(
        back_populates="record",
        order_by="PayrollLine.position",
    )

    @property
    def earnings(self) -> list[PayrollLine]:
        return [line for line in self.lines if line.line_type == LineType.EARNING.value]

    @property
    def deductions(self) -> list[PayrollLine]:
        return [line for line in self.lines if line.line_type == LineType.DEDUCTION.value]

    @property
    def tax_breakdown(self) -> TaxBreakdown:
        return TaxBreakdown(
            income_tax=self.income_tax,
            pension_contribution=self.pension_contribution,
            other=self.other_tax,
        )


class PayrollLine(Base):
    """An earning or deduction line of a payroll record. Insert-only."""

    __tablename__ = "payroll_line"

    line_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    record_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_record.record_id", ondelete="RESTRICT"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    line_type: Mapped[str] = mapped_column(String, nullable=False)
    label: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str | None] = mapped_column(String, nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    taxable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("record_id", "position", name="uq_payroll_line_position"),
        CheckConstraint("amount >= 0", name="payroll_line_amount_non_negative"),
        CheckConstraint(
            "line_type IN ('EARNING', 'DEDUCTION')",
            name="payroll_line_type_check",
        ),
    )

    record: Mapped[PayrollRecord] = relationship(back_populates="lines")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"label": self.label, "code": self.code, "amount": self.amount}
        if self.line_type == LineType.EARNING.value:
            data["taxable"] = self.taxable
        return data


# Fields a later process may change; everything else is frozen at creation.
MUTABLE_RECORD_FIELDS = frozenset(
    {"status", "payment_date", "notes", "updated_by", "updated_at"}
)


@event.listens_for(Session, "before_flush")
def _enforce_record_immutability(session: Session, flush_context: Any, instances: Any) -> None:
    """Reject changes to stored financial data before they reach the database."""
    for obj in session.dirty:
        if isinstance(obj, PayrollRecord):
            state = inspect(obj)
            for attr in state.mapper.column_attrs:
                if attr.key in MUTABLE_RECORD_FIELDS:
                    continue
                if state.attrs[attr.key].history.has_changes():
                    raise ImmutableRecordError(obj.record_id, attr.key)
        elif isinstance(obj, PayrollLine) and session.is_modified(obj):
            raise ImmutableRecordError(obj.record_id, "lines")

    for obj in session.new:
        if isinstance(obj, PayrollLine) and obj.record is not None:
            if inspect(obj.record).persistent:
                raise ImmutableRecordError(obj.record_id, "lines")

    for obj in session.deleted:
        if isinstance(obj, PayrollRecord):
            raise ImmutableRecordError(obj.record_id, "<delete>")
        if isinstance(obj, PayrollLine):
            raise ImmutableRecordError(obj.record_id, "lines")
