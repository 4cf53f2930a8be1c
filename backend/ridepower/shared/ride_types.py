"""
Ride log types.

This module contains only dataclasses with NO imports from features
to avoid circular dependencies between the live ride and the
post-ride correction.
"""

from dataclasses import dataclass
from typing import Optional

from .constants import AltitudeSource


@dataclass(frozen=True)
class RideLogEntry:
    """
    One processed tick.

    None marks an unavailable value. The last four fields are only
    filled in by the post-ride correction pass.
    """
    elapsed_s: int
    abs_timestamp_ms: Optional[float]
    speed_kmh: float
    power_w: int
    longitude: Optional[float]
    latitude: Optional[float]
    altitude_m: Optional[float]
    gradient_percent: Optional[float]
    cadence_rpm: int
    gps_accuracy_m: Optional[float]
    synthetic: bool
    bearing_deg: Optional[float]
    wind_speed_ms: Optional[float]
    wind_direction_deg: Optional[float]
    sensor_speed_kmh: Optional[float]
    sensor_cadence_rpm: Optional[int]
    gear_ratio: Optional[float]

    altitude_corrected_m: Optional[float] = None
    gradient_corrected_percent: Optional[float] = None
    power_corrected_w: Optional[int] = None
    altitude_source: Optional[AltitudeSource] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> dict:
        """Convert to dict for API response."""
        return {
            "elapsed_s": self.elapsed_s,
            "abs_timestamp_ms": self.abs_timestamp_ms,
            "speed_kmh": self.speed_kmh,
            "power_w": self.power_w,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "altitude_m": self.altitude_m,
            "gradient_percent": self.gradient_percent,
            "cadence_rpm": self.cadence_rpm,
            "gps_accuracy_m": self.gps_accuracy_m,
            "synthetic": self.synthetic,
            "bearing_deg": self.bearing_deg,
            "wind_speed_ms": self.wind_speed_ms,
            "wind_direction_deg": self.wind_direction_deg,
            "sensor_speed_kmh": self.sensor_speed_kmh,
            "sensor_cadence_rpm": self.sensor_cadence_rpm,
            "gear_ratio": self.gear_ratio,
            "altitude_corrected_m": self.altitude_corrected_m,
            "gradient_corrected_percent": self.gradient_corrected_percent,
            "power_corrected_w": self.power_corrected_w,
            "altitude_source": (
                self.altitude_source.value if self.altitude_source else None
            ),
        }
