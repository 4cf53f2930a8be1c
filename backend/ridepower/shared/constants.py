"""
Unified physical constants and model limits.

This module provides a single source of truth for the numbers shared by
the live power estimate and the post-ride recompute.
"""

from enum import Enum


# Standard gravity, m/s^2
GRAVITY_ACCEL = 9.80665

# Air density at sea level, 15°C (kg/m^3)
DEFAULT_AIR_DENSITY = 1.225

# Cadence assumed when no crank sensor is connected (rpm)
DEFAULT_CADENCE_RPM = 80

# 700x25c tyre (m)
DEFAULT_WHEEL_CIRCUMFERENCE_M = 2.105

# Gradient is always clamped to +/- this decimal slope
MAX_GRADIENT = 0.30

# Altitude used until the position source reports one (m)
FALLBACK_ALTITUDE_M = 100.0

KMH_PER_MS = 3.6


class CdaPreset(str, Enum):
    """Riding positions with a typical drag area."""
    HOODS = "hoods"
    DROPS = "drops"
    OUT_OF_SADDLE = "out_of_saddle"

    @property
    def cda_m2(self) -> float:
        return CDA_PRESETS[self]


CDA_PRESETS: dict[CdaPreset, float] = {
    CdaPreset.HOODS: 0.320,
    CdaPreset.DROPS: 0.290,
    CdaPreset.OUT_OF_SADDLE: 0.380,
}


class AltitudeSource(str, Enum):
    """Where a logged altitude came from after correction."""
    API = "API"
    GPS = "GPS"
    GPS_INVALID_COORDS = "GPS (Invalid Coords)"
    GPS_API_SHORT = "GPS (API data short)"
