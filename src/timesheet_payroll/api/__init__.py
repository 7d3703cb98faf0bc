"""HTTP surface of the timesheet payroll engine."""
