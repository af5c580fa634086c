"""Payroll calculation engine."""

from staff_payroll.calculators.line_builder import LineItemBuilder
from staff_payroll.calculators.proration import (
    InvalidPeriodError,
    InvalidSalaryError,
    ProrationStrategy,
    parse_period,
    prorate,
)
from staff_payroll.calculators.record_builder import PayrollRecordBuilder, RecordValidationError
from staff_payroll.calculators.statutory import StatutoryDeductionEngine

__all__ = [
    "InvalidPeriodError",
    "InvalidSalaryError",
    "LineItemBuilder",
    "PayrollRecordBuilder",
    "ProrationStrategy",
    "RecordValidationError",
    "StatutoryDeductionEngine",
    "parse_period",
    "prorate",
]
