"""Type definitions for calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

ZERO = Decimal("0")
CENT = Decimal("0.01")


class RunType(str, Enum):
    """Payroll batch classification."""

    REGULAR = "REGULAR"
    BONUS = "BONUS"
    ADJUSTMENT = "ADJUSTMENT"
    TERMINATION = "TERMINATION"
    OTHER = "OTHER"


class LineType(str, Enum):
    """Payroll line item types."""

    EARNING = "EARNING"
    DEDUCTION = "DEDUCTION"


@dataclass(frozen=True)
class LineCandidate:
    """A candidate line item before persistence. Amounts are never negative."""

    line_type: LineType
    label: str
    amount: Decimal
    code: str | None = None
    taxable: bool = True  # Only meaningful for earnings

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "label": self.label,
            "code": self.code,
            "amount": self.amount,
        }
        if self.line_type == LineType.EARNING:
            data["taxable"] = self.taxable
        return data


@dataclass(frozen=True)
class MonthlyAmount:
    """A recurring monthly allowance or standing deduction from the roster."""

    label: str
    amount: Decimal
    code: str | None = None
    taxable: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MonthlyAmount:
        return cls(
            label=str(data["label"]),
            amount=Decimal(str(data["amount"])),
            code=data.get("code"),
            taxable=bool(data.get("taxable", True)),
        )


@dataclass(frozen=True)
class StaffPayInput:
    """Everything the builder needs to know about one staff member."""

    staff_member_id: UUID
    monthly_salary: Decimal
    name: str = ""
    allowances: tuple[MonthlyAmount, ...] = ()
    standing_deductions: tuple[MonthlyAmount, ...] = ()


@dataclass(frozen=True)
class StatutoryDeductions:
    """The four statutory components for one gross figure."""

    flat_rate_contribution: Decimal
    two_tier_contribution: Decimal
    levy: Decimal
    income_tax: Decimal
    taxable_income: Decimal

    @property
    def total(self) -> Decimal:
        return self.flat_rate_contribution + self.two_tier_contribution + self.levy + self.income_tax


@dataclass(frozen=True)
class TaxBreakdown:
    """Tax portion of a record, stored for audit."""

    income_tax: Decimal = ZERO
    pension_contribution: Decimal = ZERO
    other: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.income_tax + self.pension_contribution + self.other


@dataclass
class PayrollDraft:
    """A fully computed payroll record that has not been persisted yet."""

    staff_member_id: UUID
    period_start: date
    period_end: date
    run_type: RunType
    currency: str
    earnings: list[LineCandidate] = field(default_factory=list)
    deductions: list[LineCandidate] = field(default_factory=list)
    tax_breakdown: TaxBreakdown = field(default_factory=TaxBreakdown)
    gross_pay: Decimal = ZERO
    total_deductions: Decimal = ZERO
    net_pay: Decimal = ZERO
    staff_name: str = ""

    @property
    def identity(self) -> tuple[UUID, date, date, str]:
        """The uniqueness key of the record."""
        return (self.staff_member_id, self.period_start, self.period_end, self.run_type.value)

    def validate(self) -> list[str]:
        """Re-check the record invariants.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []

        earnings_sum = sum((line.amount for line in self.earnings), ZERO)
        if abs(self.gross_pay - earnings_sum) > CENT:
            errors.append(f"gross_pay {self.gross_pay} != sum of earnings {earnings_sum}")

        deductions_sum = sum((line.amount for line in self.deductions), ZERO)
        expected_total = deductions_sum + self.tax_breakdown.total
        if self.total_deductions != expected_total:
            errors.append(
                f"total_deductions {self.total_deductions} != "
                f"deductions {deductions_sum} + taxes {self.tax_breakdown.total}"
            )

        expected_net = max(ZERO, self.gross_pay - self.total_deductions)
        if self.net_pay != expected_net:
            errors.append(f"net_pay {self.net_pay} != {expected_net}")

        amounts = [
            self.gross_pay,
            self.total_deductions,
            self.net_pay,
            self.tax_breakdown.income_tax,
            self.tax_breakdown.pension_contribution,
            self.tax_breakdown.other,
            *(line.amount for line in self.earnings),
            *(line.amount for line in self.deductions),
        ]
        if any(a < 0 for a in amounts):
            errors.append("negative monetary amount")

        return errors
