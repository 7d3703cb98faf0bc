"""Create all tables on the configured database.

Usage:
    python scripts/create_schema.py [--database-url URL]

Tables that already exist are left untouched.
"""

from __future__ import annotations

import argparse
import asyncio

from timesheet_payroll.config import get_settings
from timesheet_payroll.database import create_schema, get_engine


async def run(database_url: str) -> None:
    engine = get_engine(database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()
    target = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Schema created on {target}")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create the timesheet payroll schema")
    parser.add_argument(
        "--database-url",
        type=str,
        default=get_settings().database_url,
        help="Database URL (default: from settings)",
    )
    args = parser.parse_args()
    asyncio.run(run(args.database_url))


if __name__ == "__main__":
    main()
