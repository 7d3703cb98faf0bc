"""Report assembly: fetch, derive through the cache, aggregate, render."""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_payroll.calculators.periods import DateRange, pay_period_before
from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import EmployeeRecord, PayBreakdown, PunchRecord
from timesheet_payroll.config import Settings, get_settings
from timesheet_payroll.exceptions import ComputationError, InvalidInputError
from timesheet_payroll.reporting.exporter import EXPORT_HOUR_PLACES, ReportExporter
from timesheet_payroll.reporting.period_aggregator import PeriodAggregator, PeriodSummary
from timesheet_payroll.reporting.trend_metrics import TrendMetricsComputer, overtime_leaders
from timesheet_payroll.reporting.types import (
    DashboardMetrics,
    DerivedEntry,
    LastPayrollSummary,
    OvertimeLeader,
)
from timesheet_payroll.services.calculation_cache import CalculationCache
from timesheet_payroll.services.record_store import RecordStore

logger = logging.getLogger(__name__)

# Per-punch outcome of a derivation pass: a breakdown, or the reason there is none.
Derivation = PayBreakdown | ComputationError | InvalidInputError


class ReportService:
    """Read-side orchestration over one session.

    Breakdowns always come from ``CalculationCache``. A punch whose breakdown
    cannot be derived is logged and left out; it never fails the report.
    """

    def __init__(self, session: AsyncSession, config: Settings | None = None):
        self.session = session
        self.config = config or get_settings()
        self.store = RecordStore(session)
        self.cache = CalculationCache(session, self.store)

    async def tenant_settings(self, tenant_id: int) -> TenantSettings:
        return TenantSettings.from_mapping(await self.store.get_settings(tenant_id))

    async def payroll_report(self, tenant_id: int, date_range: DateRange) -> list[DerivedEntry]:
        """Per-punch rows over the range, oldest first."""
        settings = await self.tenant_settings(tenant_id)
        employees = await self._employees_by_id(tenant_id)
        punches = await self._punches(tenant_id, date_range)
        derived = await self._derive_all(punches, employees, settings)
        entries = self._entries(punches, employees, derived)
        entries.sort(key=lambda e: (e.punch.work_date, e.employee.name, e.punch.punch_id))
        return entries

    async def payroll_report_csv(self, tenant_id: int, date_range: DateRange) -> str:
        entries = await self.payroll_report(tenant_id, date_range)
        return ReportExporter(EXPORT_HOUR_PLACES).payroll_report_csv(entries)

    async def overtime_report(
        self, tenant_id: int, date_range: DateRange, limit: int | None = None
    ) -> list[OvertimeLeader]:
        entries = await self.payroll_report(tenant_id, date_range)
        if limit is None:
            limit = self.config.overtime_leaders_limit
        return overtime_leaders(entries, limit)

    async def period_summaries(
        self, tenant_id: int, date_range: DateRange
    ) -> list[PeriodSummary]:
        """One summary per active employee, including those without punches."""
        settings = await self.tenant_settings(tenant_id)
        employees = await self._employees_by_id(tenant_id)
        punches = await self._punches(tenant_id, date_range)
        derived = await self._derive_all(punches, employees, settings)
        active = [e for e in employees.values() if e.active]
        return self._aggregate(tenant_id, active, punches, date_range, settings, derived)

    async def export_csv(self, tenant_id: int, date_range: DateRange) -> str:
        summaries = await self.period_summaries(tenant_id, date_range)
        return ReportExporter(EXPORT_HOUR_PLACES).to_csv(summaries)

    async def dashboard(self, tenant_id: int, as_of_date: date) -> DashboardMetrics:
        settings = await self.tenant_settings(tenant_id)
        computer = TrendMetricsComputer(
            settings.work_week_start,
            leaders_limit=self.config.overtime_leaders_limit,
        )
        series_range = computer.series_range(as_of_date)
        last_period = pay_period_before(as_of_date, settings.work_week_start)
        fetch_range = DateRange(min(series_range.start, last_period.start), series_range.end)

        employees = await self._employees_by_id(tenant_id)
        punches = await self._punches(tenant_id, fetch_range)
        recent = [
            PunchRecord.from_model(p)
            for p in await self.store.list_recent_punches(
                tenant_id, self.config.recent_entries_limit
            )
        ]
        derived = await self._derive_all(
            punches + [p for p in recent if not fetch_range.contains(p.work_date)],
            employees,
            settings,
        )
        entries = self._entries(punches, employees, derived)

        recent_entries: list[tuple[PunchRecord, EmployeeRecord | None, PayBreakdown | None]] = []
        for punch in recent:
            outcome = derived.get(punch.punch_id)
            recent_entries.append(
                (
                    punch,
                    employees.get(punch.employee_id),
                    outcome if isinstance(outcome, PayBreakdown) else None,
                )
            )

        active = [e for e in employees.values() if e.active]
        summaries = self._aggregate(tenant_id, active, punches, last_period, settings, derived)
        last_payroll: LastPayrollSummary = computer.summarize_last_payroll(last_period, summaries)

        return computer.compute_dashboard(
            tenant_id,
            as_of_date,
            entries,
            active_employees=len(active),
            recent_entries=recent_entries,
            last_payroll=last_payroll,
        )

    async def _employees_by_id(self, tenant_id: int) -> dict[int, EmployeeRecord]:
        # Inactive employees stay in the map: their historical punches still report.
        return {
            e.id: EmployeeRecord.from_model(e)
            for e in await self.store.list_employees(tenant_id)
        }

    async def _punches(self, tenant_id: int, date_range: DateRange) -> list[PunchRecord]:
        return [
            PunchRecord.from_model(p)
            for p in await self.store.list_punches(
                tenant_id, from_date=date_range.start, to_date=date_range.end
            )
        ]

    async def _derive_all(
        self,
        punches: Sequence[PunchRecord],
        employees: dict[int, EmployeeRecord],
        settings: TenantSettings,
    ) -> dict[int, Derivation]:
        derived: dict[int, Derivation] = {}
        for punch in punches:
            employee = employees.get(punch.employee_id)
            if employee is None:
                derived[punch.punch_id] = ComputationError(
                    f"Employee {punch.employee_id} not found", punch_id=punch.punch_id
                )
                continue
            try:
                derived[punch.punch_id] = await self.cache.derive(punch, employee, settings)
            except (ComputationError, InvalidInputError) as e:
                derived[punch.punch_id] = e
        return derived

    @staticmethod
    def _entries(
        punches: Sequence[PunchRecord],
        employees: dict[int, EmployeeRecord],
        derived: dict[int, Derivation],
    ) -> list[DerivedEntry]:
        entries: list[DerivedEntry] = []
        for punch in punches:
            outcome = derived.get(punch.punch_id)
            if not isinstance(outcome, PayBreakdown):
                logger.warning(
                    "Skipping punch %s for employee %s: %s",
                    punch.punch_id,
                    punch.employee_id,
                    outcome,
                )
                continue
            entries.append(DerivedEntry(punch, employees[punch.employee_id], outcome))
        return entries

    @staticmethod
    def _aggregate(
        tenant_id: int,
        employees: Sequence[EmployeeRecord],
        punches: Sequence[PunchRecord],
        date_range: DateRange,
        settings: TenantSettings,
        derived: dict[int, Derivation],
    ) -> list[PeriodSummary]:
        def lookup(punch: PunchRecord) -> PayBreakdown:
            outcome = derived.get(punch.punch_id)
            if isinstance(outcome, PayBreakdown):
                return outcome
            if outcome is None:
                raise ComputationError(
                    f"No breakdown derived for punch {punch.punch_id}", punch_id=punch.punch_id
                )
            raise outcome

        aggregator = PeriodAggregator(settings, derive=lookup)
        return aggregator.aggregate(tenant_id, employees, punches, date_range)
