"""Unit tests for PeriodAggregator."""

import logging
from datetime import date, time
from decimal import Decimal

import pytest

from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import EmployeeRecord, PayBreakdown, PunchRecord
from timesheet_payroll.exceptions import InvalidInputError
from timesheet_payroll.reporting.period_aggregator import PeriodAggregator

TENANT = 1
PERIOD = DateRange(date(2024, 1, 3), date(2024, 1, 16))

JANE = EmployeeRecord(1, TENANT, "Jane", "Doe", Decimal("20"))
JOHN = EmployeeRecord(2, TENANT, "John", "Smith", Decimal("25"))


def make_punch(punch_id: int, employee_id: int = 1, **overrides) -> PunchRecord:
    values = dict(
        punch_id=punch_id,
        tenant_id=TENANT,
        employee_id=employee_id,
        work_date=date(2024, 1, 10),
        time_in=time(8, 0),
        time_out=time(18, 0),
        lunch_minutes=30,
    )
    values.update(overrides)
    return PunchRecord(**values)


@pytest.fixture
def aggregator() -> PeriodAggregator:
    return PeriodAggregator(TenantSettings(mileage_rate=Decimal("0.50")))


class TestCompleteness:
    """Every employee passed in gets a summary."""

    def test_no_punches_still_yields_one_summary_each(self, aggregator):
        summaries = aggregator.aggregate(TENANT, [JANE, JOHN], [], PERIOD)

        assert [s.employee_id for s in summaries] == [1, 2]
        assert all(not s.has_entries for s in summaries)
        assert all(s.total_pay == 0 for s in summaries)

    def test_employee_without_punches_flagged(self, aggregator):
        summaries = aggregator.aggregate(TENANT, [JANE, JOHN], [make_punch(1)], PERIOD)

        assert summaries[0].has_entries
        assert summaries[0].entry_count == 1
        assert not summaries[1].has_entries


class TestSummation:
    """Totals per employee."""

    def test_sums_hours_and_pay(self, aggregator):
        punches = [
            make_punch(1, miles=Decimal("10")),
            make_punch(2, work_date=date(2024, 1, 11), time_in=None, time_out=None,
                       pto_hours=Decimal("8")),
        ]
        [jane] = aggregator.aggregate(TENANT, [JANE], punches, PERIOD)

        assert jane.reg_hours == Decimal("8")
        assert jane.ot_hours == Decimal("1.5")
        assert jane.total_hours == Decimal("9.5")
        assert jane.pto_hours == Decimal("8")
        assert jane.miles == Decimal("10")
        assert jane.mileage_pay == Decimal("5.00")
        assert jane.pto_pay == Decimal("160.00")
        assert jane.total_pay == Decimal("160") + Decimal("45") + Decimal("5") + Decimal("160")

    def test_regular_and_holiday_pay_groupings(self, aggregator):
        punch = make_punch(
            1,
            time_in=None,
            time_out=None,
            misc_hours=Decimal("1"),
            holiday_worked_hours=Decimal("2"),
            holiday_non_worked_hours=Decimal("3"),
        )
        [jane] = aggregator.aggregate(TENANT, [JANE], [punch], PERIOD)

        assert jane.regular_pay == Decimal("20.00")
        assert jane.holiday_pay == Decimal("60.00") + Decimal("60.00")

    def test_punches_outside_range_ignored(self, aggregator):
        punches = [make_punch(1, work_date=date(2024, 1, 2)), make_punch(2, work_date=PERIOD.end)]
        [jane] = aggregator.aggregate(TENANT, [JANE], punches, PERIOD)

        assert jane.entry_count == 1

    def test_punches_of_unlisted_employees_ignored(self, aggregator):
        [jane] = aggregator.aggregate(TENANT, [JANE], [make_punch(1, employee_id=2)], PERIOD)
        assert not jane.has_entries

    def test_miles_recovered_from_mileage_pay(self):
        """When a breakdown does not carry miles they come from pay / rate."""

        def derive(punch: PunchRecord) -> PayBreakdown:
            zero = Decimal("0")
            return PayBreakdown(
                punch_id=punch.punch_id,
                worked_hours=zero,
                reg_hours=zero,
                ot_hours=zero,
                pto_hours=zero,
                holiday_worked_hours=zero,
                holiday_non_worked_hours=zero,
                misc_hours=zero,
                reg_pay=zero,
                ot_pay=zero,
                pto_pay=zero,
                holiday_worked_pay=zero,
                holiday_non_worked_pay=zero,
                misc_hours_pay=zero,
                mileage_pay=Decimal("15.00"),
                misc_reimbursement=zero,
                total_pay=Decimal("15.00"),
            )

        aggregator = PeriodAggregator(TenantSettings(mileage_rate=Decimal("0.50")), derive=derive)
        [jane] = aggregator.aggregate(TENANT, [JANE], [make_punch(1)], PERIOD)

        assert jane.miles == Decimal("30")


class TestPartialFailure:
    """Bad punches are skipped, never fatal."""

    def test_unpayable_punch_skipped(self, aggregator, caplog):
        bad = make_punch(2, time_in=None, time_out=None)
        with caplog.at_level(logging.WARNING):
            [jane] = aggregator.aggregate(TENANT, [JANE], [make_punch(1), bad], PERIOD)

        assert jane.entry_count == 1
        assert jane.skipped_punch_ids == [2]
        assert "Skipping punch 2" in caplog.text

    def test_invalid_punch_skipped(self, aggregator):
        bad = make_punch(2, miles=Decimal("-5"))
        [jane] = aggregator.aggregate(TENANT, [JANE], [bad], PERIOD)

        assert not jane.has_entries
        assert jane.skipped_punch_ids == [2]


class TestTenantScoping:
    """Records from another tenant are rejected."""

    def test_foreign_employee(self, aggregator):
        foreign = EmployeeRecord(3, 99, "Eve", "Other", Decimal("30"))
        with pytest.raises(InvalidInputError):
            aggregator.aggregate(TENANT, [JANE, foreign], [], PERIOD)

    def test_foreign_punch(self, aggregator):
        punch = make_punch(1, tenant_id=99)
        with pytest.raises(InvalidInputError):
            aggregator.aggregate(TENANT, [JANE], [punch], PERIOD)
