"""Seed a tenant and its calculation settings.

Usage:
    python scripts/seed_settings.py [--tenant-id ID | --tenant-name NAME]
        [--mileage-rate 0.67] [--ot-threshold 8] [--work-week-start 3]
        [--holiday-rate-multiplier 1.5]

Without --tenant-id a new tenant is created. Settings the tenant already
has are kept; only missing keys are inserted.
"""

from __future__ import annotations

import argparse
import asyncio

from timesheet_payroll.calculators.tenant_settings import (
    HOLIDAY_RATE_MULTIPLIER,
    MILEAGE_RATE,
    OT_THRESHOLD,
    WORK_WEEK_START,
    TenantSettings,
)
from timesheet_payroll.config import get_settings
from timesheet_payroll.database import get_engine, make_session_factory
from timesheet_payroll.services.record_store import RecordStore

SEED_VALUES = {
    MILEAGE_RATE: "0.67",
    OT_THRESHOLD: "8",
    WORK_WEEK_START: "3",
    HOLIDAY_RATE_MULTIPLIER: "1.5",
}


async def seed(
    database_url: str,
    tenant_id: int | None,
    tenant_name: str,
    values: dict[str, str],
) -> int:
    """Insert missing settings for the tenant. Returns the tenant id."""
    normalized = {key: TenantSettings.normalize(key, raw) for key, raw in values.items()}
    engine = get_engine(database_url)
    try:
        async with make_session_factory(engine)() as session:
            store = RecordStore(session)
            if tenant_id is None:
                tenant = await store.create_tenant(tenant_name)
                print(f"Created tenant {tenant.id} ({tenant_name})")
            else:
                tenant = await store.get_tenant(tenant_id)

            existing = await store.get_settings(tenant.id)
            for key, value in normalized.items():
                if key in existing:
                    print(f"  {key} already set to {existing[key]}, skipping")
                    continue
                await store.set_setting(tenant.id, key, value)
                print(f"  {key} = {value}")

            await session.commit()
            return tenant.id
    finally:
        await engine.dispose()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed tenant calculation settings")
    parser.add_argument("--tenant-id", type=int, default=None)
    parser.add_argument("--tenant-name", type=str, default="Demo Company")
    parser.add_argument("--mileage-rate", default=SEED_VALUES[MILEAGE_RATE])
    parser.add_argument("--ot-threshold", default=SEED_VALUES[OT_THRESHOLD])
    parser.add_argument("--work-week-start", default=SEED_VALUES[WORK_WEEK_START])
    parser.add_argument(
        "--holiday-rate-multiplier", default=SEED_VALUES[HOLIDAY_RATE_MULTIPLIER]
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=get_settings().database_url,
        help="Database URL (default: from settings)",
    )
    args = parser.parse_args()

    values = {
        MILEAGE_RATE: args.mileage_rate,
        OT_THRESHOLD: args.ot_threshold,
        WORK_WEEK_START: args.work_week_start,
        HOLIDAY_RATE_MULTIPLIER: args.holiday_rate_multiplier,
    }
    asyncio.run(seed(args.database_url, args.tenant_id, args.tenant_name, values))


if __name__ == "__main__":
    main()
