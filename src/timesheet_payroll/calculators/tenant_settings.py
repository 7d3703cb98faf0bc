"""Tenant-scoped calculation settings with documented defaults."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping

from timesheet_payroll.exceptions import InvalidInputError

MILEAGE_RATE = "mileage_rate"
OT_THRESHOLD = "ot_threshold"
HOLIDAY_RATE_MULTIPLIER = "holiday_rate_multiplier"
WORK_WEEK_START = "work_week_start"

SETTING_KEYS = (MILEAGE_RATE, OT_THRESHOLD, HOLIDAY_RATE_MULTIPLIER, WORK_WEEK_START)

# Used whenever a tenant has no stored row for the key.
DEFAULTS: dict[str, str] = {
    MILEAGE_RATE: "0.30",
    OT_THRESHOLD: "8",
    HOLIDAY_RATE_MULTIPLIER: "1.5",
    WORK_WEEK_START: "3",
}


def _parse_decimal(key: str, raw: str, minimum: Decimal) -> Decimal:
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"Invalid value for {key}: {raw!r}", field=key, value=raw)
    if not value.is_finite() or value < minimum:
        raise InvalidInputError(
            f"{key} must be a number >= {minimum}, got {raw!r}", field=key, value=raw
        )
    return value


def _parse_weekday(key: str, raw: str) -> int:
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise InvalidInputError(f"Invalid value for {key}: {raw!r}", field=key, value=raw)
    if not 0 <= value <= 6:
        raise InvalidInputError(
            f"{key} must be a weekday index 0 (Sunday) to 6 (Saturday)",
            field=key,
            value=raw,
        )
    return value


@dataclass(frozen=True)
class TenantSettings:
    """Resolved settings for one tenant.

    ``ot_threshold`` is a per-punch (daily) rule: hours worked in a single
    punch beyond it are overtime. There is no weekly accumulation.
    ``work_week_start`` uses 0=Sunday .. 6=Saturday.
    """

    mileage_rate: Decimal = Decimal(DEFAULTS[MILEAGE_RATE])
    ot_threshold: Decimal = Decimal(DEFAULTS[OT_THRESHOLD])
    holiday_rate_multiplier: Decimal = Decimal(DEFAULTS[HOLIDAY_RATE_MULTIPLIER])
    work_week_start: int = int(DEFAULTS[WORK_WEEK_START])

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> TenantSettings:
        """Build settings from stored key/value rows, falling back to defaults."""
        merged = {**DEFAULTS, **{k: v for k, v in values.items() if k in DEFAULTS}}
        return cls(
            mileage_rate=_parse_decimal(MILEAGE_RATE, merged[MILEAGE_RATE], Decimal("0")),
            ot_threshold=_parse_decimal(OT_THRESHOLD, merged[OT_THRESHOLD], Decimal("0")),
            holiday_rate_multiplier=_parse_decimal(
                HOLIDAY_RATE_MULTIPLIER, merged[HOLIDAY_RATE_MULTIPLIER], Decimal("1")
            ),
            work_week_start=_parse_weekday(WORK_WEEK_START, merged[WORK_WEEK_START]),
        )

    def to_mapping(self) -> dict[str, str]:
        return {
            MILEAGE_RATE: str(self.mileage_rate),
            OT_THRESHOLD: str(self.ot_threshold),
            HOLIDAY_RATE_MULTIPLIER: str(self.holiday_rate_multiplier),
            WORK_WEEK_START: str(self.work_week_start),
        }

    @staticmethod
    def normalize(key: str, raw: object) -> str:
        """Validate a single incoming value and return its stored text form."""
        if key not in DEFAULTS:
            raise InvalidInputError(f"Unknown setting {key!r}", field=key, value=raw)
        if key == WORK_WEEK_START:
            return str(_parse_weekday(key, str(raw)))
        minimum = Decimal("1") if key == HOLIDAY_RATE_MULTIPLIER else Decimal("0")
        return str(_parse_decimal(key, str(raw), minimum))
