"""
Live telemetry fusion.

One call per position sample (real or synthetic): advance the ride
clock and distance, resolve speed/cadence/altitude with sensor-over-GPS
precedence, run the power model and append a log entry. All state
changes for a tick happen before the entry is appended, inside a single
synchronous call.
"""

import logging
import math
from typing import Optional

from ridepower.features.power import (
    RiderConfiguration,
    TelemetrySnapshot,
    calculate_total_power,
)
from ridepower.features.sensors import SpeedCadenceSensor
from ridepower.shared.constants import FALLBACK_ALTITUDE_M, KMH_PER_MS
from ridepower.shared.formatters import round_half_up, round_optional
from ridepower.shared.geo import bearing_degrees

from .models import (
    PositionSample,
    RideLogEntry,
    RideState,
    SyntheticPosition,
)

logger = logging.getLogger(__name__)

# Real samples closer together than this are floored (and may be duplicates)
MIN_REAL_TIME_DELTA_S = 0.05
# Time delta for a synthetic sample that arrives without a usable gap
SYNTHETIC_FALLBACK_DELTA_S = 1.0

# Gear ratio needs some pedalling and some movement
MIN_GEAR_CADENCE_RPM = 5
MIN_GEAR_SPEED_KMH = 0.1
# Below this, assume the rider is not pedalling
MIN_DEFAULT_CADENCE_SPEED_KMH = 1.0


def _raw_fields(sample: PositionSample) -> tuple:
    return (sample.latitude, sample.longitude, sample.altitude_m, sample.speed_ms)


def resolve_speed_kmh(
    sample: PositionSample,
    sensor: Optional[SpeedCadenceSensor]
) -> float:
    """Dedicated sensor speed wins over GPS speed."""
    if sensor is not None and sensor.speed_kmh is not None:
        speed = sensor.speed_kmh
    else:
        gps_speed_ms = sample.speed_ms if sample.speed_ms is not None else 0.0
        speed = gps_speed_ms * KMH_PER_MS
    return max(0.0, speed)


def resolve_cadence_rpm(
    speed_kmh: float,
    sensor: Optional[SpeedCadenceSensor],
    rider: RiderConfiguration
) -> int:
    """Sensor cadence, else the rider's default while moving, else 0."""
    if sensor is not None and sensor.cadence_rpm is not None:
        cadence = sensor.cadence_rpm
    elif speed_kmh > MIN_DEFAULT_CADENCE_SPEED_KMH:
        cadence = rider.default_cadence_rpm
    else:
        cadence = 0
    return max(0, round_half_up(cadence))


def gear_ratio(
    speed_kmh: float,
    cadence_rpm: float,
    wheel_circumference_m: float
) -> Optional[float]:
    """Wheel RPM / crank RPM, or None when not pedalling or not moving."""
    if (
        cadence_rpm > MIN_GEAR_CADENCE_RPM
        and speed_kmh > MIN_GEAR_SPEED_KMH
        and wheel_circumference_m
        and wheel_circumference_m > 0
    ):
        wheel_rpm = (speed_kmh / KMH_PER_MS) / wheel_circumference_m * 60
        return wheel_rpm / cadence_rpm
    return None


def process_position_update(
    state: RideState,
    sample: PositionSample,
    rider: RiderConfiguration,
    now_ms: float,
    sensor: Optional[SpeedCadenceSensor] = None,
) -> Optional[RideLogEntry]:
    """
    Fuse one position sample into the ride.

    The caller is responsible for only calling this while the ride is
    active.

    Args:
        state: Ride state to update
        sample: Real fix or failsafe placeholder
        rider: Rider/bike parameters
        now_ms: Session clock, used when the sample has no timestamp
        sensor: Speed/cadence sensor, if one is attached

    Returns:
        The appended log entry, or None for a dropped duplicate
    """
    synthetic = isinstance(sample, SyntheticPosition)
    event_ts = sample.timestamp_ms if sample.timestamp_ms is not None else now_ms
    if not synthetic:
        state.last_real_sample_at_ms = now_ms

    first_sample = state.previous_timestamp_ms is None
    time_delta_s = 0.0
    if not first_sample:
        time_delta_s = (event_ts - state.previous_timestamp_ms) / 1000

    if (
        not first_sample
        and not synthetic
        and time_delta_s < MIN_REAL_TIME_DELTA_S
        and state.last_raw_sample == _raw_fields(sample)
    ):
        state.previous_timestamp_ms = event_ts
        logger.debug(f"Dropped duplicate position sample (dt={time_delta_s:.3f}s)")
        return None

    if synthetic:
        if time_delta_s <= 0:
            time_delta_s = SYNTHETIC_FALLBACK_DELTA_S
    elif time_delta_s < MIN_REAL_TIME_DELTA_S:
        time_delta_s = MIN_REAL_TIME_DELTA_S

    if not first_sample:
        state.total_elapsed_ms += time_delta_s * 1000
    state.previous_timestamp_ms = event_ts
    if not synthetic:
        state.last_raw_sample = _raw_fields(sample)

    # Position and heading
    new_lat, new_lon, new_alt = sample.latitude, sample.longitude, sample.altitude_m
    if new_lat is not None and new_lon is not None:
        if (
            state.current_latitude is not None
            and state.current_longitude is not None
            and (new_lat != state.current_latitude or new_lon != state.current_longitude)
        ):
            state.current_bearing_deg = bearing_degrees(
                state.current_latitude, state.current_longitude, new_lat, new_lon
            )
    if new_lat is not None:
        state.current_latitude = new_lat
    if new_lon is not None:
        state.current_longitude = new_lon

    # Altitude
    if state.previous_altitude_m is None and new_alt is not None:
        state.previous_altitude_m = new_alt
    if new_alt is not None:
        state.current_altitude_m = new_alt
    elif state.current_altitude_m is None:
        state.current_altitude_m = FALLBACK_ALTITUDE_M

    # Speed, cadence, gear
    sensor_speed = sensor.speed_kmh if sensor is not None else None
    sensor_cadence = sensor.cadence_rpm if sensor is not None else None
    speed_kmh = resolve_speed_kmh(sample, sensor)
    cadence_rpm = resolve_cadence_rpm(speed_kmh, sensor, rider)
    state.current_speed_kmh = speed_kmh
    state.current_cadence_rpm = cadence_rpm
    state.current_gear_ratio = gear_ratio(
        speed_kmh, cadence_rpm, rider.wheel_circumference_m
    )

    if not first_sample:
        state.total_distance_km += speed_kmh / 3600 * time_delta_s

    if state.current_latitude is not None:
        state.previous_latitude = state.current_latitude
    if state.current_longitude is not None:
        state.previous_longitude = state.current_longitude

    snapshot = TelemetrySnapshot(
        speed_kmh=speed_kmh,
        previous_speed_kmh=state.previous_speed_kmh,
        altitude_m=state.current_altitude_m,
        previous_altitude_m=(
            state.previous_altitude_m
            if state.previous_altitude_m is not None
            else state.current_altitude_m
        ),
        cadence_rpm=cadence_rpm,
        time_delta_s=time_delta_s,
        bearing_deg=state.current_bearing_deg,
        wind_speed_ms=state.wind_speed_ms,
        wind_direction_deg=state.wind_direction_deg,
    )
    result = calculate_total_power(snapshot, rider)

    state.previous_speed_kmh = speed_kmh
    if synthetic:
        state.previous_altitude_m = state.current_altitude_m
    elif new_alt is not None:
        state.previous_altitude_m = new_alt

    state.current_power_w = result.power_w
    state.current_gradient_percent = result.gradient_percent
    state.power_readings.append(result.power_w)

    entry = RideLogEntry(
        elapsed_s=int(math.floor(state.total_elapsed_ms / 1000)),
        abs_timestamp_ms=sample.timestamp_ms,
        speed_kmh=round(speed_kmh, 1),
        power_w=round_half_up(result.power_w),
        longitude=round_optional(state.current_longitude, 5),
        latitude=round_optional(state.current_latitude, 5),
        altitude_m=round_optional(state.current_altitude_m, 1),
        gradient_percent=round(result.gradient_percent, 1),
        cadence_rpm=cadence_rpm,
        gps_accuracy_m=round_optional(sample.accuracy_m, 1),
        synthetic=synthetic,
        bearing_deg=round_optional(state.current_bearing_deg, 1),
        wind_speed_ms=round_optional(state.wind_speed_ms, 2),
        wind_direction_deg=state.wind_direction_deg,
        sensor_speed_kmh=round_optional(sensor_speed, 1),
        sensor_cadence_rpm=(
            round_half_up(sensor_cadence) if sensor_cadence is not None else None
        ),
        gear_ratio=round_optional(state.current_gear_ratio, 2),
    )
    state.log.append(entry)
    return entry
