"""Tests for ReportService over an in-memory database."""

import logging
from datetime import date, time
from decimal import Decimal

import pytest

from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.models import Punch
from timesheet_payroll.reporting.exporter import EXPORT_COLUMNS
from timesheet_payroll.services.record_store import RecordStore
from timesheet_payroll.services.report_service import ReportService

PERIOD = DateRange(date(2024, 1, 3), date(2024, 1, 16))


def workday(work_date: date, **overrides) -> dict:
    values = {
        "work_date": work_date,
        "time_in": time(8, 0),
        "time_out": time(16, 30),
        "lunch_minutes": 30,
    }
    values.update(overrides)
    return values


@pytest.fixture
def reports(session) -> ReportService:
    return ReportService(session)


@pytest.fixture
async def unpayable_punch(session, employee) -> Punch:
    """Written straight through the ORM, bypassing store validation."""
    punch = Punch(
        tenant_id=employee.tenant_id,
        employee_id=employee.id,
        work_date=date(2024, 1, 11),
        time_in=time(8, 0),
        time_out=None,
        lunch_minutes=0,
    )
    session.add(punch)
    await session.flush()
    return punch


class TestPayrollReport:
    async def test_rows_sorted_by_date_then_name(self, reports, session, punch, second_employee):
        store = RecordStore(session)
        earlier = await store.create_punch(
            second_employee.tenant_id, second_employee.id, workday(date(2024, 1, 9))
        )
        same_day = await store.create_punch(
            second_employee.tenant_id, second_employee.id, workday(date(2024, 1, 10))
        )

        entries = await reports.payroll_report(punch.tenant_id, PERIOD)

        assert [e.punch.punch_id for e in entries] == [earlier.id, punch.id, same_day.id]
        assert entries[1].breakdown.total_pay == Decimal("205.00")

    async def test_unpayable_punch_left_out(self, reports, punch, unpayable_punch, caplog):
        with caplog.at_level(logging.WARNING):
            entries = await reports.payroll_report(punch.tenant_id, PERIOD)

        assert [e.punch.punch_id for e in entries] == [punch.id]
        assert f"Skipping punch {unpayable_punch.id}" in caplog.text

    async def test_csv(self, reports, punch):
        body = await reports.payroll_report_csv(punch.tenant_id, PERIOD)

        assert body.splitlines()[1] == "Jane Doe,8.00,1.50,160.00,45.00,0.00,205.00"

    async def test_overtime_report(self, reports, punch, second_employee, session):
        await RecordStore(session).create_punch(
            second_employee.tenant_id,
            second_employee.id,
            workday(date(2024, 1, 10), time_out=time(20, 0)),
        )

        leaders = await reports.overtime_report(punch.tenant_id, PERIOD, limit=1)

        assert [l.employee.employee_id for l in leaders] == [second_employee.id]

    async def test_other_tenant_sees_nothing(self, reports, punch, other_tenant):
        assert await reports.payroll_report(other_tenant.id, PERIOD) == []


class TestPeriodSummaries:
    async def test_every_active_employee_listed(self, reports, punch, second_employee):
        summaries = await reports.period_summaries(punch.tenant_id, PERIOD)

        by_id = {s.employee_id: s for s in summaries}
        assert set(by_id) == {punch.employee_id, second_employee.id}
        assert by_id[punch.employee_id].total_pay == Decimal("205.00")
        assert not by_id[second_employee.id].has_entries

    async def test_inactive_employee_excluded(self, reports, session, punch, second_employee):
        await RecordStore(session).deactivate_employee(second_employee.tenant_id, second_employee.id)

        summaries = await reports.period_summaries(punch.tenant_id, PERIOD)

        assert [s.employee_id for s in summaries] == [punch.employee_id]

    async def test_skipped_punch_recorded(self, reports, punch, unpayable_punch):
        [summary] = await reports.period_summaries(punch.tenant_id, PERIOD)

        assert summary.entry_count == 1
        assert summary.skipped_punch_ids == [unpayable_punch.id]

    async def test_uses_cache(self, reports, punch):
        """A report run stores the breakdowns it derives."""
        await reports.period_summaries(punch.tenant_id, PERIOD)

        assert await reports.cache._load(punch.id) is not None

    async def test_export_csv(self, reports, punch, second_employee):
        lines = (await reports.export_csv(punch.tenant_id, PERIOD)).splitlines()

        assert lines[0] == ",".join(EXPORT_COLUMNS)
        assert len(lines) == 3


class TestDashboard:
    async def test_metrics(self, reports, session, punch, second_employee):
        """as_of Friday 2024-01-12 with weeks starting Wednesday."""
        await RecordStore(session).create_punch(
            punch.tenant_id, punch.employee_id, workday(date(2024, 1, 4))
        )

        metrics = await reports.dashboard(punch.tenant_id, date(2024, 1, 12))

        assert metrics.current_start == date(2024, 1, 10)
        assert metrics.previous_start == date(2024, 1, 3)
        assert metrics.total_payroll.current == Decimal("205.00")
        assert metrics.total_payroll.previous == Decimal("160.00")
        assert metrics.total_payroll.trend == Decimal("28.125")
        assert metrics.active_employees == 2
        assert [b.week_start for b in metrics.weekly_series] == [
            date(2024, 1, 10),
            date(2024, 1, 3),
        ]
        assert [l.employee.employee_id for l in metrics.overtime_leaders] == [punch.employee_id]
        assert len(metrics.recent_entries) == 2
        assert all(breakdown is not None for _, _, breakdown in metrics.recent_entries)

        last = metrics.last_payroll
        assert (last.start_date, last.end_date) == (date(2023, 12, 27), date(2024, 1, 9))
        assert last.total_hours == Decimal("8")
        assert last.employees_completed == 1
        assert last.total_employees == 2

    async def test_empty_tenant(self, reports, tenant):
        metrics = await reports.dashboard(tenant.id, date(2024, 1, 12))

        assert metrics.total_payroll.trend == Decimal("0")
        assert metrics.weekly_series == []
        assert metrics.recent_entries == []
        assert metrics.last_payroll.total_employees == 0
