"""Unit tests for ReportExporter."""

from datetime import date, time
from decimal import Decimal

from timesheet_payroll.calculators.payroll_calculator import PayrollCalculator
from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import EmployeeRecord, PunchRecord
from timesheet_payroll.reporting.exporter import (
    EXPORT_COLUMNS,
    PAYROLL_REPORT_COLUMNS,
    ReportExporter,
    export_filename,
    format_fixed,
)
from timesheet_payroll.reporting.period_aggregator import PeriodSummary
from timesheet_payroll.reporting.types import DerivedEntry


def make_summary() -> PeriodSummary:
    return PeriodSummary(
        employee_id=1,
        employee_name="Jane Doe",
        has_entries=True,
        entry_count=2,
        reg_hours=Decimal("16"),
        ot_hours=Decimal("1.333"),
        pto_hours=Decimal("8"),
        miles=Decimal("12.345"),
        misc_reimbursement=Decimal("4.5"),
        reg_pay=Decimal("320"),
        ot_pay=Decimal("40"),
        pto_pay=Decimal("160"),
        holiday_worked_pay=Decimal("30"),
        holiday_non_worked_pay=Decimal("20"),
        misc_hours_pay=Decimal("10"),
        mileage_pay=Decimal("6.17"),
        total_pay=Decimal("590.67"),
    )


class TestFormatting:
    def test_half_up(self):
        assert format_fixed(Decimal("1.005"), 2) == "1.01"
        assert format_fixed(Decimal("1.25"), 1) == "1.3"

    def test_pads_to_places(self):
        assert format_fixed(Decimal("8"), 2) == "8.00"

    def test_filename_encodes_range(self):
        period = DateRange(date(2024, 1, 3), date(2024, 1, 16))
        assert export_filename(period) == "payroll-2024-01-03-to-2024-01-16.csv"


class TestTable:
    """Column order and precision of the period export."""

    def test_export_row(self):
        [row] = ReportExporter().to_table([make_summary()])

        assert len(row) == len(EXPORT_COLUMNS)
        assert row == [
            "Jane Doe",
            "17.33",
            "8.00",
            "0.00",
            "0.00",
            "1.33",
            "12.35",
            "4.50",
            "330.00",
            "40.00",
            "160.00",
            "50.00",
            "6.17",
            "590.67",
        ]

    def test_display_precision_uses_one_place_for_hours(self):
        [row] = ReportExporter(hour_places=1).to_table([make_summary()])

        assert row[1] == "17.3"
        assert row[6] == "12.3"
        assert row[-1] == "590.67"

    def test_csv_has_header_and_rows(self):
        summaries = [make_summary(), PeriodSummary(employee_id=2, employee_name="John Smith")]
        lines = ReportExporter().to_csv(summaries).splitlines()

        assert lines[0] == ",".join(EXPORT_COLUMNS)
        assert len(lines) == 3
        assert lines[2].startswith("John Smith,0.00,")


class TestPayrollReport:
    def test_rows_per_punch(self):
        employee = EmployeeRecord(1, 1, "Jane", "Doe", Decimal("20"))
        punch = PunchRecord(
            punch_id=1,
            tenant_id=1,
            employee_id=1,
            work_date=date(2024, 1, 10),
            time_in=time(8, 0),
            time_out=time(18, 0),
            lunch_minutes=30,
        )
        breakdown = PayrollCalculator().compute(punch, employee.rate, TenantSettings())
        csv_text = ReportExporter().payroll_report_csv(
            [DerivedEntry(punch=punch, employee=employee, breakdown=breakdown)]
        )

        assert csv_text.splitlines() == [
            ",".join(PAYROLL_REPORT_COLUMNS),
            "Jane Doe,8.00,1.50,160.00,45.00,0.00,205.00",
        ]
