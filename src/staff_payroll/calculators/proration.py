"""Salary proration over a pay period."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from staff_payroll.calculators.types import CENT


class InvalidPeriodError(Exception):
    """Raised when a pay period is malformed or inverted."""

    def __init__(self, period_start: Any, period_end: Any, reason: str):
        self.period_start = period_start
        self.period_end = period_end
        self.reason = reason
        super().__init__(f"Invalid period {period_start} to {period_end}: {reason}")


class InvalidSalaryError(Exception):
    """Raised when a monthly salary is missing or not positive."""

    def __init__(self, salary: Any, staff_member_id: Any = None):
        self.salary = salary
        self.staff_member_id = staff_member_id
        who = f" for staff member {staff_member_id}" if staff_member_id else ""
        super().__init__(f"Monthly salary must be positive{who}, got {salary!r}")


class ProrationStrategy(str, Enum):
    """Divisor strategy for periods that cross a month boundary.

    PERIOD_END_MONTH: every day is worth salary / days in period_end's month.
    PER_MONTH: each calendar-month segment uses its own month length.
    """

    PERIOD_END_MONTH = "period_end_month"
    PER_MONTH = "per_month"


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise ValueError("periodStart and periodEnd are required")
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            # Full ISO timestamp; a trailing Z means UTC
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    raise ValueError(f"unparsable date {value!r}")


def parse_period(period_start: Any, period_end: Any) -> tuple[date, date]:
    """Normalize a period to calendar days and validate it.

    Accepts dates, datetimes (truncated to the day) or ISO strings.

    Raises:
        InvalidPeriodError: If either date is unparsable or start > end
    """
    try:
        start = _coerce_date(period_start)
        end = _coerce_date(period_end)
    except ValueError as e:
        raise InvalidPeriodError(period_start, period_end, str(e)) from e

    if start > end:
        raise InvalidPeriodError(period_start, period_end, "period start is after period end")
    return start, end


def days_in_month(day: date) -> int:
    """Calendar days in the month containing day."""
    return calendar.monthrange(day.year, day.month)[1]


def period_days(period_start: date, period_end: date) -> int:
    """Inclusive day count of a period."""
    return (period_end - period_start).days + 1


def _month_segments(period_start: date, period_end: date) -> list[tuple[date, date]]:
    segments: list[tuple[date, date]] = []
    cursor = period_start
    while cursor <= period_end:
        month_end = cursor.replace(day=days_in_month(cursor))
        segment_end = min(month_end, period_end)
        segments.append((cursor, segment_end))
        cursor = segment_end + timedelta(days=1)
    return segments


def prorate(
    monthly_salary: Decimal,
    period_start: date,
    period_end: date,
    strategy: ProrationStrategy = ProrationStrategy.PERIOD_END_MONTH,
) -> Decimal:
    """Prorate a monthly amount over a period, rounded to cents.

    The salary is multiplied before dividing so a full calendar month
    reproduces the monthly figure exactly.

    Raises:
        InvalidSalaryError: If monthly_salary <= 0
        InvalidPeriodError: If the period is malformed
    """
    if monthly_salary is None or Decimal(monthly_salary) <= 0:
        raise InvalidSalaryError(monthly_salary)
    start, end = parse_period(period_start, period_end)
    salary = Decimal(monthly_salary)

    if strategy == ProrationStrategy.PER_MONTH:
        gross = sum(
            (
                salary * period_days(seg_start, seg_end) / days_in_month(seg_start)
                for seg_start, seg_end in _month_segments(start, end)
            ),
            Decimal("0"),
        )
    else:
        gross = salary * period_days(start, end) / days_in_month(end)

    return gross.quantize(CENT, rounding=ROUND_HALF_UP)
