"""
Power model types.

Rider/bike configuration, the per-tick telemetry snapshot and the
result of a power calculation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ridepower.shared.constants import (
    CdaPreset,
    DEFAULT_AIR_DENSITY,
    DEFAULT_CADENCE_RPM,
    DEFAULT_WHEEL_CIRCUMFERENCE_M,
)

logger = logging.getLogger(__name__)


class RiderConfigurationError(ValueError):
    """Rider configuration is missing a required parameter."""


@dataclass(frozen=True)
class RiderConfiguration:
    """
    Rider + bike parameters, immutable for the duration of a ride.

    Units: kg, m, unitless Crr, m^2 CdA, kg/m^3, rpm.
    """
    system_mass_kg: float
    wheel_circumference_m: float
    crr: float
    cda_m2: float
    air_density: float = DEFAULT_AIR_DENSITY
    default_cadence_rpm: int = DEFAULT_CADENCE_RPM

    def __post_init__(self):
        for name in ("system_mass_kg", "cda_m2", "air_density"):
            value = getattr(self, name)
            if value is None or value <= 0:
                raise RiderConfigurationError(f"{name} must be positive, got {value!r}")
        if self.crr is None or self.crr < 0:
            raise RiderConfigurationError(f"crr must not be negative, got {self.crr!r}")
        if self.wheel_circumference_m is None or self.wheel_circumference_m <= 0:
            raise RiderConfigurationError("wheel_circumference_m must be positive")
        if self.default_cadence_rpm is None or self.default_cadence_rpm < 0:
            raise RiderConfigurationError("default_cadence_rpm must not be negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RiderConfiguration":
        """
        Build from user-entered settings.

        Expected keys: system_mass_kg, wheel_circumference_mm, crr,
        cda_m2 (or cda_preset), air_density, default_cadence_rpm.

        Wheel circumference, air density and default cadence have
        fallbacks; everything else is required.
        """
        missing = [
            key for key in ("system_mass_kg", "crr")
            if data.get(key) in (None, "")
        ]
        cda = data.get("cda_m2")
        if cda in (None, "") and data.get("cda_preset"):
            cda = CdaPreset(data["cda_preset"]).cda_m2
        if cda in (None, ""):
            missing.append("cda_m2")
        if missing:
            raise RiderConfigurationError(
                f"Rider configuration incomplete, missing: {', '.join(missing)}"
            )

        wheel_mm = data.get("wheel_circumference_mm")
        if wheel_mm in (None, "") or float(wheel_mm) <= 0:
            logger.warning(
                "Wheel circumference not configured, "
                f"using default {DEFAULT_WHEEL_CIRCUMFERENCE_M:.3f} m"
            )
            wheel_m = DEFAULT_WHEEL_CIRCUMFERENCE_M
        else:
            wheel_m = float(wheel_mm) / 1000

        air_density = data.get("air_density")
        if air_density in (None, ""):
            air_density = DEFAULT_AIR_DENSITY

        default_cadence = data.get("default_cadence_rpm")
        if not isinstance(default_cadence, (int, float)) or isinstance(default_cadence, bool):
            default_cadence = DEFAULT_CADENCE_RPM

        return cls(
            system_mass_kg=float(data["system_mass_kg"]),
            wheel_circumference_m=wheel_m,
            crr=float(data["crr"]),
            cda_m2=float(cda),
            air_density=float(air_density),
            default_cadence_rpm=int(default_cadence),
        )

    @classmethod
    def from_settings(cls, settings) -> "RiderConfiguration":
        """Build from the application's rider_* defaults."""
        return cls.from_mapping({
            "system_mass_kg": settings.rider_system_mass_kg,
            "wheel_circumference_mm": settings.rider_wheel_circumference_mm,
            "crr": settings.rider_crr,
            "cda_m2": settings.rider_cda_m2,
            "air_density": settings.rider_air_density,
            "default_cadence_rpm": settings.rider_default_cadence_rpm,
        })


@dataclass(frozen=True)
class TelemetrySnapshot:
    """
    Inputs of one power calculation.

    Speeds are km/h and already resolved (sensor over GPS).
    """
    speed_kmh: float
    previous_speed_kmh: float
    altitude_m: Optional[float]
    previous_altitude_m: Optional[float]
    cadence_rpm: int
    time_delta_s: float
    bearing_deg: Optional[float] = None
    wind_speed_ms: Optional[float] = 0.0
    wind_direction_deg: Optional[float] = None


@dataclass(frozen=True)
class PowerResult:
    """Rider power for one tick plus the terms it was built from."""
    power_w: float
    gradient_percent: float
    rolling_w: float
    aero_w: float
    gravity_w: float
    kinetic_w: float

    @property
    def system_power_w(self) -> float:
        """Unclamped sum of the four terms."""
        return self.rolling_w + self.aero_w + self.gravity_w + self.kinetic_w
