"""Staff payroll engine."""
