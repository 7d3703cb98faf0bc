"""Unit tests for tenant settings resolution."""

from decimal import Decimal

import pytest

from timesheet_payroll.calculators.tenant_settings import DEFAULTS, TenantSettings
from timesheet_payroll.exceptions import InvalidInputError


class TestDefaults:
    """Values used when a tenant has no stored rows."""

    def test_empty_mapping_gives_documented_defaults(self):
        settings = TenantSettings.from_mapping({})

        assert settings.mileage_rate == Decimal("0.30")
        assert settings.ot_threshold == Decimal("8")
        assert settings.holiday_rate_multiplier == Decimal("1.5")
        assert settings.work_week_start == 3
        assert settings == TenantSettings()

    def test_stored_values_override_defaults(self):
        settings = TenantSettings.from_mapping({"mileage_rate": "0.67", "work_week_start": "0"})

        assert settings.mileage_rate == Decimal("0.67")
        assert settings.work_week_start == 0
        assert settings.ot_threshold == Decimal(DEFAULTS["ot_threshold"])

    def test_unknown_stored_keys_are_ignored(self):
        assert TenantSettings.from_mapping({"theme": "dark"}) == TenantSettings()

    def test_mapping_round_trip(self):
        settings = TenantSettings(mileage_rate=Decimal("0.67"))
        assert TenantSettings.from_mapping(settings.to_mapping()) == settings


class TestValidation:
    """Rejecting bad stored or submitted values."""

    @pytest.mark.parametrize(
        "key,raw",
        [
            ("mileage_rate", "abc"),
            ("mileage_rate", "-0.1"),
            ("ot_threshold", "-1"),
            ("holiday_rate_multiplier", "0.5"),
            ("work_week_start", "7"),
            ("work_week_start", "x"),
        ],
    )
    def test_invalid_values(self, key, raw):
        with pytest.raises(InvalidInputError) as exc_info:
            TenantSettings.normalize(key, raw)
        assert exc_info.value.field == key

    def test_unknown_key(self):
        with pytest.raises(InvalidInputError):
            TenantSettings.normalize("overtime_weekly", "40")

    def test_normalize_returns_stored_text(self):
        assert TenantSettings.normalize("ot_threshold", Decimal("10")) == "10"
        assert TenantSettings.normalize("work_week_start", 0) == "0"

    def test_bad_stored_value_raises(self):
        with pytest.raises(InvalidInputError):
            TenantSettings.from_mapping({"ot_threshold": "eight"})
