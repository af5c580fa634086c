"""Pytest fixtures for staff payroll tests."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from staff_payroll.calculators.proration import ProrationStrategy
from staff_payroll.calculators.record_builder import PayrollRecordBuilder
from staff_payroll.calculators.statutory import StatutoryDeductionEngine
from staff_payroll.calculators.types import MonthlyAmount, StaffPayInput
from staff_payroll.config import StatutoryPolicy, load_policy

@pytest.fixture
def policy() -> StatutoryPolicy:
    """The default statutory tables."""
    return load_policy()


@pytest.fixture
def engine(policy: StatutoryPolicy) -> StatutoryDeductionEngine:
    return StatutoryDeductionEngine(policy)


@pytest.fixture
def builder(policy: StatutoryPolicy) -> PayrollRecordBuilder:
    return PayrollRecordBuilder(policy, ProrationStrategy.PERIOD_END_MONTH)


@pytest.fixture
def make_staff():
    """Factory for calculator input."""

    def _make(
        salary: str | Decimal = "80000",
        name: str = "Alice Wanjiru",
        allowances: tuple[MonthlyAmount, ...] = (),
        standing_deductions: tuple[MonthlyAmount, ...] = (),
    ) -> StaffPayInput:
        return StaffPayInput(
            staff_member_id=uuid4(),
            monthly_salary=Decimal(salary),
            name=name,
            allowances=allowances,
            standing_deductions=standing_deductions,
        )

    return _make
