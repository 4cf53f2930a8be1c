"""
Tests for RiderConfiguration construction and validation.
"""

import logging

import pytest

from ridepower.config import Settings
from ridepower.features.power import RiderConfiguration, RiderConfigurationError
from ridepower.shared.constants import CdaPreset


class TestFromMapping:
    """Tests for RiderConfiguration.from_mapping."""

    def test_full_mapping(self):
        rider = RiderConfiguration.from_mapping({
            "system_mass_kg": 82,
            "wheel_circumference_mm": 2096,
            "crr": 0.004,
            "cda_m2": 0.29,
            "air_density": 1.19,
            "default_cadence_rpm": 90,
        })
        assert rider.system_mass_kg == 82.0
        assert rider.wheel_circumference_m == pytest.approx(2.096)
        assert rider.crr == 0.004
        assert rider.cda_m2 == 0.29
        assert rider.air_density == 1.19
        assert rider.default_cadence_rpm == 90

    def test_wheel_fallback_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            rider = RiderConfiguration.from_mapping({
                "system_mass_kg": 75, "crr": 0.005, "cda_m2": 0.32,
            })
        assert rider.wheel_circumference_m == pytest.approx(2.105)
        assert "Wheel circumference not configured" in caplog.text

    def test_non_positive_wheel_falls_back(self):
        rider = RiderConfiguration.from_mapping({
            "system_mass_kg": 75, "crr": 0.005, "cda_m2": 0.32,
            "wheel_circumference_mm": 0,
        })
        assert rider.wheel_circumference_m == pytest.approx(2.105)

    def test_air_density_and_cadence_defaults(self):
        rider = RiderConfiguration.from_mapping({
            "system_mass_kg": 75, "crr": 0.005, "cda_m2": 0.32,
            "wheel_circumference_mm": 2105,
        })
        assert rider.air_density == 1.225
        assert rider.default_cadence_rpm == 80

    def test_cda_preset(self):
        rider = RiderConfiguration.from_mapping({
            "system_mass_kg": 75, "crr": 0.005,
            "cda_preset": CdaPreset.DROPS.value,
        })
        assert rider.cda_m2 == pytest.approx(0.290)

    def test_explicit_cda_wins_over_preset(self):
        rider = RiderConfiguration.from_mapping({
            "system_mass_kg": 75, "crr": 0.005,
            "cda_m2": 0.25, "cda_preset": "out_of_saddle",
        })
        assert rider.cda_m2 == 0.25

    @pytest.mark.parametrize("missing", ["system_mass_kg", "crr", "cda_m2"])
    def test_missing_required(self, missing):
        data = {"system_mass_kg": 75, "crr": 0.005, "cda_m2": 0.32}
        del data[missing]
        with pytest.raises(RiderConfigurationError, match=missing):
            RiderConfiguration.from_mapping(data)

    def test_non_positive_mass(self):
        with pytest.raises(RiderConfigurationError):
            RiderConfiguration.from_mapping({
                "system_mass_kg": 0, "crr": 0.005, "cda_m2": 0.32,
            })

    def test_zero_crr_allowed(self):
        rider = RiderConfiguration.from_mapping({
            "system_mass_kg": 75, "crr": 0, "cda_m2": 0.32,
        })
        assert rider.crr == 0.0

    def test_negative_crr_rejected(self):
        with pytest.raises(RiderConfigurationError, match="crr"):
            RiderConfiguration.from_mapping({
                "system_mass_kg": 75, "crr": -0.001, "cda_m2": 0.32,
            })


class TestFromSettings:
    """Tests for building the rider from application settings."""

    def test_defaults(self):
        rider = RiderConfiguration.from_settings(Settings())
        assert rider.system_mass_kg == 75.0
        assert rider.wheel_circumference_m == pytest.approx(2.105)
        assert rider.crr == 0.005
        assert rider.cda_m2 == 0.320

    def test_overrides(self):
        rider = RiderConfiguration.from_settings(
            Settings(rider_system_mass_kg=90, rider_cda_m2=0.38)
        )
        assert rider.system_mass_kg == 90.0
        assert rider.cda_m2 == 0.38

    def test_presets_cover_every_position(self):
        assert {p.cda_m2 for p in CdaPreset} == {0.320, 0.290, 0.380}
