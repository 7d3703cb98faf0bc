"""Fixed-column tabular export of period summaries."""

from __future__ import annotations

import csv
import io
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.reporting.period_aggregator import PeriodSummary
from timesheet_payroll.reporting.types import DerivedEntry

EXPORT_COLUMNS = [
    "Employee Name",
    "Total Hours",
    "PTO Hours",
    "Holiday Worked",
    "Holiday Non-Worked",
    "Overtime Hours",
    "Miles",
    "Reimbursements",
    "Regular Pay",
    "Overtime Pay",
    "PTO Pay",
    "Holiday Pay",
    "Mileage Pay",
    "Total Pay",
]

PAYROLL_REPORT_COLUMNS = [
    "Employee",
    "Regular Hours",
    "Overtime Hours",
    "Regular Pay",
    "Overtime Pay",
    "Mileage Pay",
    "Total Pay",
]

# Hours precision per consumer: exports carry two places, UI payloads one.
EXPORT_HOUR_PLACES = 2
DISPLAY_HOUR_PLACES = 1
CURRENCY_PLACES = 2


def format_fixed(value: Decimal, places: int) -> str:
    """Render ``value`` with exactly ``places`` decimals, half-up."""
    quantum = Decimal(1).scaleb(-places)
    return str(value.quantize(quantum, rounding=ROUND_HALF_UP))


def export_filename(date_range: DateRange) -> str:
    """CSV filename encoding the range: ``payroll-<from>-to-<to>.csv``."""
    return f"payroll-{date_range}.csv"


class ReportExporter:
    """Renders aggregated results as rows in a fixed column order.

    Currency is always two decimals. Hours use ``hour_places``, which is two
    for the CSV export path and one where a UI payload is built.
    """

    def __init__(self, hour_places: int = EXPORT_HOUR_PLACES):
        self.hour_places = hour_places

    def hours(self, value: Decimal) -> str:
        return format_fixed(value, self.hour_places)

    @staticmethod
    def money(value: Decimal) -> str:
        return format_fixed(value, CURRENCY_PLACES)

    def to_table(self, summaries: Iterable[PeriodSummary]) -> list[list[str]]:
        """One row per summary, columns as in ``EXPORT_COLUMNS``."""
        rows: list[list[str]] = []
        for s in summaries:
            rows.append(
                [
                    s.employee_name,
                    self.hours(s.total_hours),
                    self.hours(s.pto_hours),
                    self.hours(s.holiday_worked_hours),
                    self.hours(s.holiday_non_worked_hours),
                    self.hours(s.ot_hours),
                    # Miles share the hour precision of the consuming report.
                    self.hours(s.miles),
                    self.money(s.misc_reimbursement),
                    self.money(s.regular_pay),
                    self.money(s.ot_pay),
                    self.money(s.pto_pay),
                    self.money(s.holiday_pay),
                    self.money(s.mileage_pay),
                    self.money(s.total_pay),
                ]
            )
        return rows

    def to_csv(self, summaries: Iterable[PeriodSummary]) -> str:
        return self._write_csv(EXPORT_COLUMNS, self.to_table(summaries))

    def payroll_report_rows(self, entries: Sequence[DerivedEntry]) -> list[list[str]]:
        """Per-punch rows for the payroll report CSV."""
        return [
            [
                e.employee.name,
                self.hours(e.breakdown.reg_hours),
                self.hours(e.breakdown.ot_hours),
                self.money(e.breakdown.reg_pay),
                self.money(e.breakdown.ot_pay),
                self.money(e.breakdown.mileage_pay),
                self.money(e.breakdown.total_pay),
            ]
            for e in entries
        ]

    def payroll_report_csv(self, entries: Sequence[DerivedEntry]) -> str:
        return self._write_csv(PAYROLL_REPORT_COLUMNS, self.payroll_report_rows(entries))

    @staticmethod
    def _write_csv(header: list[str], rows: list[list[str]]) -> str:
        handle = io.StringIO()
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(header)
        writer.writerows(rows)
        return handle.getvalue()
