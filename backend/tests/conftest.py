"""
Shared fixtures.
"""

import pytest

from ridepower.features.power import RiderConfiguration
from ridepower.shared.ride_types import RideLogEntry


@pytest.fixture
def rider():
    """75 kg system, 700x25c wheel, hoods position."""
    return RiderConfiguration(
        system_mass_kg=75.0,
        wheel_circumference_m=2.105,
        crr=0.005,
        cda_m2=0.320,
    )


@pytest.fixture
def make_entry():
    """Factory for log entries with sensible defaults."""
    def _make(**overrides) -> RideLogEntry:
        values = dict(
            elapsed_s=0,
            abs_timestamp_ms=1_700_000_000_000,
            speed_kmh=20.0,
            power_w=150,
            longitude=-114.07190,
            latitude=51.04470,
            altitude_m=100.0,
            gradient_percent=0.0,
            cadence_rpm=80,
            gps_accuracy_m=5.0,
            synthetic=False,
            bearing_deg=None,
            wind_speed_ms=0.0,
            wind_direction_deg=None,
            sensor_speed_kmh=None,
            sensor_cadence_rpm=None,
            gear_ratio=None,
        )
        values.update(overrides)
        return RideLogEntry(**values)
    return _make
