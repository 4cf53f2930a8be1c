"""
Power estimation module.

Usage:
    from ridepower.features.power import calculate_total_power, RiderConfiguration

Components:
- RiderConfiguration: rider + bike parameters
- TelemetrySnapshot: resolved inputs of one tick
- calculate_total_power: four-term model (rolling, aero, gravity, kinetic)
"""

from .models import (
    RiderConfiguration,
    RiderConfigurationError,
    TelemetrySnapshot,
    PowerResult,
)
from .physics import (
    rolling_resistance_power,
    aerodynamic_power,
    gravity_power,
    kinetic_power,
    derive_gradient,
    rider_power,
    calculate_total_power,
)

__all__ = [
    # Models
    "RiderConfiguration",
    "RiderConfigurationError",
    "TelemetrySnapshot",
    "PowerResult",
    # Physics
    "rolling_resistance_power",
    "aerodynamic_power",
    "gravity_power",
    "kinetic_power",
    "derive_gradient",
    "rider_power",
    "calculate_total_power",
]
