"""
Cycling power model.

Four independent terms, each in watts from SI inputs:

    P_rolling = Crr * m * g * cos(atan(s)) * v
    P_aero    = 0.5 * rho * CdA * |v_app| * (v_app . v_bike)
    P_gravity = m * g * dh / dt
    P_kinetic = 0.5 * m * (v^2 - v0^2) / dt

The rider's output is their sum, forced to 0 while coasting
(cadence 0) and never negative.

Used by both the live tick processor and the post-ride recompute, so
the two produce identical numbers for identical inputs.
"""

import math
from typing import Optional

from ridepower.shared.constants import GRAVITY_ACCEL, KMH_PER_MS, MAX_GRADIENT
from ridepower.shared.geo import gradient_to_percent, to_radians

from .models import PowerResult, RiderConfiguration, TelemetrySnapshot


def rolling_resistance_power(
    speed_ms: float,
    mass_kg: float,
    crr: float,
    gradient_decimal: float
) -> float:
    """Power lost to tyre rolling resistance."""
    if speed_ms < 0.1:
        return 0.0
    cos_theta = 1 / math.sqrt(1 + gradient_decimal * gradient_decimal)
    normal_force = mass_kg * GRAVITY_ACCEL * cos_theta
    return crr * normal_force * speed_ms


def aerodynamic_power(
    bike_speed_ms: float,
    bike_bearing_deg: Optional[float],
    wind_speed_ms: Optional[float],
    wind_direction_deg: Optional[float],
    cda_m2: float,
    air_density: float
) -> float:
    """
    Power against air drag with wind.

    Wind direction is where the wind comes FROM, so it blows toward
    direction + 180. The result can be negative with a tailwind
    stronger than the bike's speed; clamping happens on the total.
    """
    if bike_speed_ms < 0.01 and (wind_speed_ms is None or wind_speed_ms < 0.1):
        return 0.0
    if (
        bike_bearing_deg is None
        or wind_direction_deg is None
        or wind_speed_ms is None
        or wind_speed_ms < 0.01
    ):
        return 0.5 * air_density * cda_m2 * bike_speed_ms ** 3

    bearing_rad = to_radians(bike_bearing_deg)
    v_bike_x = bike_speed_ms * math.sin(bearing_rad)
    v_bike_y = bike_speed_ms * math.cos(bearing_rad)

    blows_to_rad = to_radians((wind_direction_deg + 180) % 360)
    v_wind_x = wind_speed_ms * math.sin(blows_to_rad)
    v_wind_y = wind_speed_ms * math.cos(blows_to_rad)

    v_app_x = v_bike_x - v_wind_x
    v_app_y = v_bike_y - v_wind_y
    v_app = math.sqrt(v_app_x * v_app_x + v_app_y * v_app_y)
    if v_app < 0.01:
        return 0.0

    dot = v_app_x * v_bike_x + v_app_y * v_bike_y
    return 0.5 * air_density * cda_m2 * v_app * dot


def gravity_power(mass_kg: float, vertical_change_m: float, time_delta_s: float) -> float:
    """Power to lift (or gained lowering) the system mass."""
    if time_delta_s <= 0:
        return 0.0
    return mass_kg * GRAVITY_ACCEL * (vertical_change_m / time_delta_s)


def kinetic_power(
    mass_kg: float,
    speed_ms: float,
    previous_speed_ms: float,
    time_delta_s: float
) -> float:
    """Rate of change of kinetic energy."""
    if time_delta_s <= 0:
        return 0.0
    energy_change = 0.5 * mass_kg * (speed_ms ** 2 - previous_speed_ms ** 2)
    return energy_change / time_delta_s


def derive_gradient(
    altitude_change_m: float,
    horizontal_distance_m: float,
    time_delta_s: float
) -> float:
    """
    Slope of travel as a decimal, clamped to +/-MAX_GRADIENT.

    When the bike barely moved but the altitude changed, the slope is
    pinned to the limit in the direction of the change.
    """
    gradient = 0.0
    if abs(horizontal_distance_m) > 0.01 and time_delta_s > 0:
        gradient = altitude_change_m / horizontal_distance_m
    elif abs(altitude_change_m) > 0.001 and time_delta_s > 0:
        gradient = MAX_GRADIENT if altitude_change_m > 0 else -MAX_GRADIENT
    return max(-MAX_GRADIENT, min(MAX_GRADIENT, gradient))


def rider_power(system_power_w: float, cadence_rpm: float) -> float:
    """No pedalling power while coasting, never negative."""
    if cadence_rpm == 0:
        return 0.0
    if system_power_w < 0:
        return 0.0
    return system_power_w


def calculate_total_power(
    snapshot: TelemetrySnapshot,
    rider: RiderConfiguration
) -> PowerResult:
    """
    Estimate rider power output for one tick.

    Args:
        snapshot: Resolved telemetry for the tick
        rider: Rider/bike parameters

    Returns:
        PowerResult with rider power and gradient percent
    """
    speed_ms = snapshot.speed_kmh / KMH_PER_MS
    previous_speed_ms = snapshot.previous_speed_kmh / KMH_PER_MS
    time_delta_s = snapshot.time_delta_s

    if snapshot.altitude_m is not None:
        current_alt = snapshot.altitude_m
    else:
        current_alt = snapshot.previous_altitude_m or 0.0
    if snapshot.previous_altitude_m is not None:
        previous_alt = snapshot.previous_altitude_m
    else:
        previous_alt = current_alt
    altitude_change_m = current_alt - previous_alt

    # Horizontal distance covered at the tick's average speed
    horizontal_m = (speed_ms + previous_speed_ms) / 2 * time_delta_s
    gradient = derive_gradient(altitude_change_m, horizontal_m, time_delta_s)

    rolling = rolling_resistance_power(
        speed_ms, rider.system_mass_kg, rider.crr, gradient
    )
    aero = aerodynamic_power(
        speed_ms,
        snapshot.bearing_deg,
        snapshot.wind_speed_ms,
        snapshot.wind_direction_deg,
        rider.cda_m2,
        rider.air_density,
    )
    gravity = gravity_power(rider.system_mass_kg, altitude_change_m, time_delta_s)
    kinetic = kinetic_power(
        rider.system_mass_kg, speed_ms, previous_speed_ms, time_delta_s
    )

    return PowerResult(
        power_w=rider_power(rolling + aero + gravity + kinetic, snapshot.cadence_rpm),
        gradient_percent=gradient_to_percent(gradient),
        rolling_w=rolling,
        aero_w=aero,
        gravity_w=gravity,
        kinetic_w=kinetic,
    )
