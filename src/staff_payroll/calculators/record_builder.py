"""Payroll record builder - composes proration and statutory deductions."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from staff_payroll.calculators.line_builder import LineItemBuilder
from staff_payroll.calculators.proration import (
    InvalidSalaryError,
    ProrationStrategy,
    parse_period,
    prorate,
)
from staff_payroll.calculators.statutory import StatutoryDeductionEngine
from staff_payroll.calculators.types import (
    LineCandidate,
    LineType,
    MonthlyAmount,
    PayrollDraft,
    RunType,
    StaffPayInput,
    TaxBreakdown,
)
from staff_payroll.config import StatutoryPolicy


class RecordValidationError(Exception):
    """Raised when a built record breaks a record invariant."""

    def __init__(self, staff_member_id: UUID, errors: list[str]):
        self.staff_member_id = staff_member_id
        self.errors = errors
        super().__init__(
            f"Payroll record for staff member {staff_member_id} is inconsistent: "
            + "; ".join(errors)
        )


class PayrollRecordBuilder:
    """Builds one complete DRAFT payroll record per staff member.

    Calculation pipeline (stable order per staff member):
    1) Prorate base salary into the "Basic" earning line
    2) Prorate each monthly allowance into its own earning line
    3) Gross = Σ earnings, taxable gross = Σ taxable earnings
    4) Statutory components from the policy tables
    5) Deduction lines: flat-rate contribution, levy, standing deductions, extras
    6) Tax breakdown: income tax + two-tier (pension) contribution
    7) Totals and invariant check

    The builder never reads the clock, so identical inputs give identical drafts.
    """

    def __init__(
        self,
        policy: StatutoryPolicy,
        strategy: ProrationStrategy = ProrationStrategy.PERIOD_END_MONTH,
    ):
        self.policy = policy
        self.strategy = strategy
        self.statutory = StatutoryDeductionEngine(policy)

    def build(
        self,
        staff: StaffPayInput,
        period_start: date,
        period_end: date,
        run_type: RunType = RunType.REGULAR,
        extra_deductions: list[MonthlyAmount] | None = None,
    ) -> PayrollDraft:
        """Build the record for one staff member.

        Raises:
            InvalidPeriodError: If the period is malformed
            InvalidSalaryError: If the monthly salary is not positive
            RecordValidationError: If the assembled record is inconsistent
        """
        start, end = parse_period(period_start, period_end)
        if staff.monthly_salary is None or staff.monthly_salary <= 0:
            raise InvalidSalaryError(staff.monthly_salary, staff.staff_member_id)

        labels = self.policy.labels

        # 1-2) Earnings
        earnings: list[LineCandidate] = [
            LineItemBuilder.create_earning_line(
                label=labels.basic,
                amount=prorate(staff.monthly_salary, start, end, self.strategy),
                code="BASIC",
            )
        ]
        for allowance in staff.allowances:
            if allowance.amount <= 0:
                continue
            earnings.append(
                LineItemBuilder.create_earning_line(
                    label=allowance.label,
                    amount=prorate(allowance.amount, start, end, self.strategy),
                    code=allowance.code,
                    taxable=allowance.taxable,
                )
            )

        # 3) Gross
        gross = LineItemBuilder.calculate_gross(earnings)
        taxable_gross = LineItemBuilder.calculate_taxable_gross(earnings)

        # 4) Statutory components
        components = self.statutory.compute(gross, taxable_gross)

        # 5) Deduction lines
        deductions: list[LineCandidate] = [
            LineItemBuilder.create_deduction_line(
                labels.flat_rate, components.flat_rate_contribution, code="FLAT_RATE"
            ),
            LineItemBuilder.create_deduction_line(labels.levy, components.levy, code="LEVY"),
        ]
        for item in (*staff.standing_deductions, *(extra_deductions or [])):
            if item.amount <= 0:
                continue
            deductions.append(
                LineItemBuilder.create_deduction_line(item.label, item.amount, code=item.code)
            )

        # 6) Tax breakdown
        taxes = TaxBreakdown(
            income_tax=components.income_tax,
            pension_contribution=components.two_tier_contribution,
        )

        # 7) Totals
        total_deductions = LineItemBuilder.calculate_total_deductions(deductions, taxes)
        draft = PayrollDraft(
            staff_member_id=staff.staff_member_id,
            period_start=start,
            period_end=end,
            run_type=RunType(run_type),
            currency=self.policy.currency,
            earnings=earnings,
            deductions=deductions,
            tax_breakdown=taxes,
            gross_pay=gross,
            total_deductions=total_deductions,
            net_pay=LineItemBuilder.calculate_net(gross, total_deductions),
            staff_name=staff.name,
        )

        errors = LineItemBuilder.validate_lines(earnings, LineType.EARNING)
        errors.extend(LineItemBuilder.validate_lines(deductions, LineType.DEDUCTION))
        errors.extend(draft.validate())
        if errors:
            raise RecordValidationError(staff.staff_member_id, errors)

        return draft
