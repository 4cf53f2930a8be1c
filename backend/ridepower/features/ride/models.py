"""
Ride data models.

RideState is the only mutable piece: it is owned by one RideSession and
changed only by the tick processor. Log entries are frozen; the
correction pass builds corrected copies with dataclasses.replace.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple, Union

from ridepower.shared.constants import AltitudeSource
from ridepower.shared.formatters import format_elapsed_time
from ridepower.shared.ride_types import RideLogEntry


class RideStatus(str, Enum):
    """Ride lifecycle."""
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"


# =============================================================================
# Position samples
# =============================================================================

@dataclass(frozen=True)
class RealPosition:
    """A fix delivered by the position source."""
    latitude: Optional[float]
    longitude: Optional[float]
    altitude_m: Optional[float] = None
    speed_ms: Optional[float] = None
    accuracy_m: Optional[float] = None
    timestamp_ms: Optional[float] = None

    synthetic: ClassVar[bool] = False


@dataclass(frozen=True)
class SyntheticPosition:
    """
    Failsafe placeholder at the last known coordinate.

    Never carries speed or accuracy.
    """
    latitude: Optional[float]
    longitude: Optional[float]
    altitude_m: Optional[float]
    timestamp_ms: float

    synthetic: ClassVar[bool] = True
    speed_ms: ClassVar[float] = 0.0
    accuracy_m: ClassVar[Optional[float]] = None


PositionSample = Union[RealPosition, SyntheticPosition]


# =============================================================================
# Ride state
# =============================================================================

@dataclass
class RideState:
    """Running state of one ride."""
    total_distance_km: float = 0.0
    total_elapsed_ms: float = 0.0

    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    previous_latitude: Optional[float] = None
    previous_longitude: Optional[float] = None
    current_altitude_m: Optional[float] = None
    previous_altitude_m: Optional[float] = None

    current_speed_kmh: float = 0.0
    previous_speed_kmh: float = 0.0
    current_cadence_rpm: int = 0
    current_bearing_deg: Optional[float] = None
    current_gear_ratio: Optional[float] = None
    current_power_w: float = 0.0
    current_gradient_percent: Optional[float] = None

    wind_speed_ms: Optional[float] = 0.0
    wind_direction_deg: Optional[float] = None

    # Timestamp of the last processed sample (session clock, ms)
    previous_timestamp_ms: Optional[float] = None
    # Raw (lat, lon, altitude, speed) of the last processed real sample
    last_raw_sample: Optional[Tuple[Optional[float], ...]] = None
    # When the position source last delivered anything (session clock, ms)
    last_real_sample_at_ms: float = 0.0

    power_readings: List[float] = field(default_factory=list)
    log: List[RideLogEntry] = field(default_factory=list)

    @property
    def average_speed_kmh(self) -> float:
        if self.total_elapsed_ms <= 0:
            return 0.0
        return self.total_distance_km / (self.total_elapsed_ms / (1000 * 3600))

    @property
    def average_power_w(self) -> float:
        if not self.power_readings:
            return 0.0
        return sum(self.power_readings) / len(self.power_readings)


@dataclass(frozen=True)
class LiveMetrics:
    """What the ride display shows after each tick."""
    status: RideStatus
    speed_kmh: float
    power_w: float
    distance_km: float
    elapsed_ms: float
    altitude_m: Optional[float]
    gradient_percent: Optional[float]
    cadence_rpm: int
    gear_ratio: Optional[float]
    average_speed_kmh: float
    average_power_w: float
    wind_speed_ms: Optional[float]
    wind_direction_deg: Optional[float]
    sensor_speed_kmh: Optional[float]
    sensor_cadence_rpm: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]

    def to_dict(self) -> dict:
        """Convert to dict for API response."""
        return {
            "status": self.status.value,
            "speed_kmh": round(self.speed_kmh, 1),
            "power_w": round(self.power_w),
            "distance_km": round(self.distance_km, 2),
            "elapsed": format_elapsed_time(self.elapsed_ms),
            "altitude_m": round(self.altitude_m) if self.altitude_m is not None else None,
            "gradient_percent": (
                round(self.gradient_percent, 1)
                if self.gradient_percent is not None else None
            ),
            "cadence_rpm": self.cadence_rpm,
            "gear_ratio": round(self.gear_ratio, 2) if self.gear_ratio is not None else None,
            "average_speed_kmh": round(self.average_speed_kmh, 1),
            "average_power_w": round(self.average_power_w),
            "wind_speed_kmh": (
                round(self.wind_speed_ms * 3.6, 1)
                if self.wind_speed_ms is not None else None
            ),
            "wind_direction_deg": self.wind_direction_deg,
            "sensor_speed_kmh": (
                round(self.sensor_speed_kmh, 1)
                if self.sensor_speed_kmh is not None else None
            ),
            "sensor_cadence_rpm": (
                round(self.sensor_cadence_rpm)
                if self.sensor_cadence_rpm is not None else None
            ),
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class RideSummary:
    """Totals reported when a ride stops."""
    distance_km: float
    elapsed_ms: float
    average_speed_kmh: float
    average_power_w: float
    gps_ascent_m: float
    gps_descent_m: float
    altitude_source: AltitudeSource = AltitudeSource.GPS
    average_power_corrected_w: Optional[int] = None
    total_ascent_m: Optional[float] = None
    total_descent_m: Optional[float] = None

    @property
    def corrected(self) -> bool:
        return self.altitude_source == AltitudeSource.API

    def to_dict(self) -> dict:
        """Convert to dict for API response."""
        return {
            "distance_km": round(self.distance_km, 2),
            "elapsed": format_elapsed_time(self.elapsed_ms),
            "average_speed_kmh": round(self.average_speed_kmh, 1),
            "average_power_w": round(self.average_power_w),
            "gps_ascent_m": round(self.gps_ascent_m, 1),
            "gps_descent_m": round(self.gps_descent_m, 1),
            "altitude_source": self.altitude_source.value,
            "average_power_corrected_w": self.average_power_corrected_w,
            "total_ascent_m": self.total_ascent_m,
            "total_descent_m": self.total_descent_m,
        }


@dataclass(frozen=True)
class RideResult:
    """Everything a stopped ride hands to export."""
    summary: RideSummary
    log: List[RideLogEntry]
