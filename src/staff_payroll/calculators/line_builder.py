"""Line item builder with fixed rounding and sign conventions."""

from __future__ import annotations

from decimal import Decimal

from staff_payroll.calculators.statutory import round_to_cents
from staff_payroll.calculators.types import ZERO, LineCandidate, LineType, TaxBreakdown


class LineItemBuilder:
    """Builds earning and deduction lines and the totals derived from them.

    Sign conventions (non-negotiable):
    - Every stored amount is non-negative; the line type carries direction.
    - EARNING adds to gross pay.
    - DEDUCTION adds to total deductions.

    Rounding:
    - Currency amounts to 2 decimals, ROUND_HALF_UP, once per line
    - Totals are sums of already-rounded lines, so they need no rounding
    """

    @staticmethod
    def create_earning_line(
        label: str,
        amount: Decimal,
        code: str | None = None,
        taxable: bool = True,
    ) -> LineCandidate:
        """Create an earning line item."""
        return LineCandidate(
            line_type=LineType.EARNING,
            label=label,
            amount=round_to_cents(abs(amount)),  # Ensure positive
            code=code,
            taxable=taxable,
        )

    @staticmethod
    def create_deduction_line(
        label: str,
        amount: Decimal,
        code: str | None = None,
    ) -> LineCandidate:
        """Create a deduction line item."""
        return LineCandidate(
            line_type=LineType.DEDUCTION,
            label=label,
            amount=round_to_cents(abs(amount)),  # Ensure positive
            code=code,
            taxable=False,
        )

    @staticmethod
    def sum_lines(lines: list[LineCandidate]) -> Decimal:
        return sum((line.amount for line in lines), ZERO)

    @staticmethod
    def calculate_gross(earnings: list[LineCandidate]) -> Decimal:
        """GROSS = Σ(EARNING)"""
        return LineItemBuilder.sum_lines(earnings)

    @staticmethod
    def calculate_taxable_gross(earnings: list[LineCandidate]) -> Decimal:
        """Σ(EARNING where taxable)"""
        return LineItemBuilder.sum_lines([line for line in earnings if line.taxable])

    @staticmethod
    def calculate_total_deductions(
        deductions: list[LineCandidate], tax_breakdown: TaxBreakdown
    ) -> Decimal:
        """TOTAL = Σ(DEDUCTION) + taxes.total"""
        return LineItemBuilder.sum_lines(deductions) + tax_breakdown.total

    @staticmethod
    def calculate_net(gross: Decimal, total_deductions: Decimal) -> Decimal:
        """NET = max(0, GROSS - TOTAL)"""
        return max(ZERO, gross - total_deductions)

    @staticmethod
    def validate_lines(lines: list[LineCandidate], expected_type: LineType) -> list[str]:
        """Validate that lines have the expected type and a non-negative amount.

        Returns list of error messages (empty if all valid).
        """
        errors: list[str] = []

        for i, line in enumerate(lines):
            if line.line_type != expected_type:
                errors.append(
                    f"Line {i} ({line.label}) is {line.line_type.value}, expected {expected_type.value}"
                )
            if line.amount < 0:
                errors.append(f"Line {i} ({line.label}) has negative amount {line.amount}")

        return errors
