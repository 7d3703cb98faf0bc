"""Timesheet payroll derivation and period-reporting engine."""

__version__ = "0.1.0"
