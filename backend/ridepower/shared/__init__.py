"""
Shared utilities (NOT business logic).

Usage:
    from ridepower.shared import haversine, bearing_degrees
    from ridepower.shared.formatters import format_elapsed_time
"""
from .geo import (
    haversine,
    bearing_degrees,
    gradient_to_percent,
    to_radians,
    to_degrees,
    EARTH_RADIUS_KM,
)
from .elevation import (
    calculate_elevation_changes,
    accumulate_elevation_change,
)
from .formatters import (
    UNAVAILABLE,
    round_half_up,
    round_optional,
    format_elapsed_time,
    format_value,
)
from .constants import (
    AltitudeSource,
    CdaPreset,
    CDA_PRESETS,
    GRAVITY_ACCEL,
    MAX_GRADIENT,
)
from .ride_types import RideLogEntry

__all__ = [
    # geo
    "haversine",
    "bearing_degrees",
    "gradient_to_percent",
    "to_radians",
    "to_degrees",
    "EARTH_RADIUS_KM",
    # elevation
    "calculate_elevation_changes",
    "accumulate_elevation_change",
    # formatters
    "UNAVAILABLE",
    "round_half_up",
    "round_optional",
    "format_elapsed_time",
    "format_value",
    # constants
    "AltitudeSource",
    "CdaPreset",
    "CDA_PRESETS",
    "GRAVITY_ACCEL",
    "MAX_GRADIENT",
    # ride log
    "RideLogEntry",
]
