"""Statutory deduction calculation from table-driven policy."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from staff_payroll.calculators.types import CENT, ZERO, StatutoryDeductions
from staff_payroll.config import FlatRateBand, StatutoryPolicy, TaxBracket, TwoTierConfig

MONTHS_PER_YEAR = Decimal("12")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def banded_flat_contribution(
    gross: Decimal,
    bands: Sequence[FlatRateBand],
    ceiling: Decimal,
) -> Decimal:
    """Fixed amount of the first band whose inclusive upper bound covers gross.

    Above the highest band the ceiling amount applies.
    """
    for band in bands:
        if gross <= band.upper_bound:
            return round_to_cents(band.amount)
    return round_to_cents(ceiling)


def two_tier_contribution(gross: Decimal, tiers: TwoTierConfig) -> Decimal:
    """Contribution on two successive slices of gross pay."""
    if gross <= 0:
        return ZERO

    tier1 = min(gross, tiers.threshold1) * tiers.rate
    tier2 = ZERO
    if gross > tiers.threshold1:
        tier2 = min(gross - tiers.threshold1, tiers.threshold2 - tiers.threshold1) * tiers.rate
    return round_to_cents(tier1 + tier2)


def percentage_levy(gross: Decimal, rate: Decimal) -> Decimal:
    """Flat percentage of gross pay."""
    if gross <= 0:
        return ZERO
    return round_to_cents(gross * rate)


def annual_bracket_tax(annual_income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Cumulative tax: each bracket's span taxed at its own marginal rate."""
    total_tax = ZERO
    lower = ZERO

    for bracket in brackets:
        if annual_income <= lower:
            break
        upper = bracket.upper_bound if bracket.upper_bound is not None else annual_income
        taxable_in_bracket = min(annual_income, upper) - lower
        if taxable_in_bracket > 0:
            total_tax += taxable_in_bracket * bracket.rate
        lower = upper

    return total_tax


def progressive_income_tax(
    taxable_income: Decimal,
    brackets: Sequence[TaxBracket],
    annual_relief: Decimal,
) -> Decimal:
    """Monthly income tax for a monthly taxable income.

    The monthly figure is annualized, run through the annual brackets, reduced
    by the annual relief (clamped at zero) and brought back to a month.
    """
    if taxable_income <= 0:
        return ZERO

    annual_tax = annual_bracket_tax(taxable_income * MONTHS_PER_YEAR, brackets)
    annual_tax = max(ZERO, annual_tax - annual_relief)
    return round_to_cents(annual_tax / MONTHS_PER_YEAR)


class StatutoryDeductionEngine:
    """Computes the four statutory components from one policy.

    Pipeline (stable order):
    1) Banded flat-rate contribution on gross
    2) Two-tier contribution on gross
    3) Percentage levy on gross
    4) Income tax on taxable gross - two-tier - levy

    Every component is rounded to cents once; income tax uses the rounded
    two-tier and levy amounts.
    """

    def __init__(self, policy: StatutoryPolicy):
        self.policy = policy

    def flat_rate(self, gross: Decimal) -> Decimal:
        return banded_flat_contribution(
            gross, self.policy.flat_rate_bands, self.policy.flat_rate_ceiling
        )

    def two_tier(self, gross: Decimal) -> Decimal:
        return two_tier_contribution(gross, self.policy.two_tier)

    def levy(self, gross: Decimal) -> Decimal:
        return percentage_levy(gross, self.policy.levy_rate)

    def income_tax(self, taxable_income: Decimal) -> Decimal:
        return progressive_income_tax(
            taxable_income,
            self.policy.income_tax_brackets,
            self.policy.annual_personal_relief,
        )

    def compute(self, gross: Decimal, taxable_gross: Decimal | None = None) -> StatutoryDeductions:
        """Compute all components for a gross figure.

        taxable_gross defaults to gross; it is lower when some earnings are
        flagged non-taxable.
        """
        if taxable_gross is None:
            taxable_gross = gross

        flat = self.flat_rate(gross)
        pension = self.two_tier(gross)
        levy = self.levy(gross)
        taxable_income = max(ZERO, taxable_gross - pension - levy)

        return StatutoryDeductions(
            flat_rate_contribution=flat,
            two_tier_contribution=pension,
            levy=levy,
            income_tax=self.income_tax(taxable_income),
            taxable_income=taxable_income,
        )
