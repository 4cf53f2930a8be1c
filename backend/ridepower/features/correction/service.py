"""
Post-ride elevation correction.

Two steps over the finished ride log:
1. Fetch terrain elevation for every entry with coordinates, in
   sequential batches. Any failed batch aborts the whole correction.
2. Replay the log against the corrected altitudes with the same power
   model as the live ride, producing corrected gradient/power per entry
   and total ascent/descent.

The input log is never modified; corrected entries are copies.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from ridepower.config import settings
from ridepower.features.power import (
    RiderConfiguration,
    TelemetrySnapshot,
    calculate_total_power,
)
from ridepower.services import ElevationClient, ElevationServiceError
from ridepower.shared.constants import AltitudeSource
from ridepower.shared.elevation import accumulate_elevation_change
from ridepower.shared.formatters import round_half_up
from ridepower.shared.ride_types import RideLogEntry

logger = logging.getLogger(__name__)

# Time delta for the first entry, which has no predecessor
FIRST_ENTRY_DELTA_S = 1.0
# Time delta for consecutive entries logged in the same second
SAME_SECOND_DELTA_S = 0.1


@dataclass(frozen=True)
class CorrectionSummary:
    """Aggregates of the recomputed ride."""
    total_ascent_m: float
    total_descent_m: float
    average_power_corrected_w: int


@dataclass(frozen=True)
class CorrectionResult:
    """Corrected copy of the log plus its summary."""
    log: List[RideLogEntry]
    summary: CorrectionSummary


def _altitude_for_replay(entry: RideLogEntry) -> Optional[float]:
    if entry.altitude_corrected_m is not None:
        return entry.altitude_corrected_m
    return entry.altitude_m


async def fetch_corrected_elevations(
    log: Sequence[RideLogEntry],
    client: ElevationClient,
    batch_size: Optional[int] = None,
) -> Optional[List[RideLogEntry]]:
    """
    Attach terrain elevation to a copy of the log.

    Batches are requested one after another so results can be appended
    in order.

    Returns:
        Copy of the log with altitude_corrected_m / altitude_source set,
        or None if there is nothing to correct or any batch failed
    """
    if not log:
        return None

    batch_size = batch_size or settings.elevation_batch_size
    valid = [entry for entry in log if entry.has_coordinates]
    if not valid:
        logger.warning("No valid coordinates for elevation correction")
        return None

    latitudes = [entry.latitude for entry in valid]
    longitudes = [entry.longitude for entry in valid]
    elevations: List[float] = []

    for start in range(0, len(latitudes), batch_size):
        batch_number = start // batch_size + 1
        logger.info(f"Fetching corrected elevations batch {batch_number}...")
        try:
            batch = await client.lookup(
                latitudes[start:start + batch_size],
                longitudes[start:start + batch_size],
            )
        except ElevationServiceError as e:
            logger.warning(
                f"Elevation batch {batch_number} failed, using GPS altitude: {e}"
            )
            return None
        elevations.extend(batch)
        percent = min(100, round(len(elevations) / len(latitudes) * 100))
        logger.info(f"Correcting elevation data ({percent}%)")

    corrected: List[RideLogEntry] = []
    api_index = 0
    for entry in log:
        if not entry.has_coordinates:
            corrected.append(replace(
                entry,
                altitude_corrected_m=entry.altitude_m,
                altitude_source=AltitudeSource.GPS_INVALID_COORDS,
            ))
        elif api_index < len(elevations):
            corrected.append(replace(
                entry,
                altitude_corrected_m=round(elevations[api_index], 1),
                altitude_source=AltitudeSource.API,
            ))
            api_index += 1
        else:
            corrected.append(replace(
                entry,
                altitude_corrected_m=entry.altitude_m,
                altitude_source=AltitudeSource.GPS_API_SHORT,
            ))

    return corrected


def recalculate_with_corrected_elevation(
    log: Sequence[RideLogEntry],
    rider: RiderConfiguration,
) -> CorrectionResult:
    """
    Recompute gradient and power for every entry from corrected altitudes.

    Uses the logged speed, cadence, bearing and wind of each entry and
    the elapsed seconds between consecutive entries.
    """
    recalculated: List[RideLogEntry] = []
    power_readings: List[float] = []
    total_ascent = 0.0
    total_descent = 0.0

    for i, entry in enumerate(log):
        current_alt = _altitude_for_replay(entry)
        time_delta_s = FIRST_ENTRY_DELTA_S
        previous_speed_kmh = entry.speed_kmh

        if i > 0:
            previous = log[i - 1]
            previous_alt = _altitude_for_replay(previous)
            previous_speed_kmh = previous.speed_kmh
            if entry.elapsed_s > previous.elapsed_s:
                time_delta_s = entry.elapsed_s - previous.elapsed_s
            else:
                time_delta_s = SAME_SECOND_DELTA_S
        else:
            previous_alt = current_alt

        if i > 0 and current_alt is not None and previous_alt is not None:
            total_ascent, total_descent = accumulate_elevation_change(
                total_ascent, total_descent, current_alt - previous_alt
            )

        result = calculate_total_power(
            TelemetrySnapshot(
                speed_kmh=entry.speed_kmh,
                previous_speed_kmh=previous_speed_kmh,
                altitude_m=current_alt,
                previous_altitude_m=previous_alt,
                cadence_rpm=entry.cadence_rpm,
                time_delta_s=time_delta_s,
                bearing_deg=entry.bearing_deg,
                wind_speed_ms=entry.wind_speed_ms if entry.wind_speed_ms is not None else 0.0,
                wind_direction_deg=entry.wind_direction_deg,
            ),
            rider,
        )
        power_readings.append(result.power_w)
        recalculated.append(replace(
            entry,
            gradient_corrected_percent=round(result.gradient_percent, 1),
            power_corrected_w=round_half_up(result.power_w),
        ))

    average_power = (
        round_half_up(sum(power_readings) / len(power_readings))
        if power_readings else 0
    )
    return CorrectionResult(
        log=recalculated,
        summary=CorrectionSummary(
            total_ascent_m=round(total_ascent, 1),
            total_descent_m=round(total_descent, 1),
            average_power_corrected_w=average_power,
        ),
    )


class ElevationCorrectionService:
    """
    Runs both correction steps.

    Usage:
        service = ElevationCorrectionService(ElevationClient(), rider)
        result = await service.correct(log)
        if result is None:
            ...  # keep GPS altitude
    """

    def __init__(
        self,
        client: ElevationClient,
        rider: RiderConfiguration,
        batch_size: Optional[int] = None,
    ):
        self.client = client
        self.rider = rider
        self.batch_size = batch_size or settings.elevation_batch_size

    async def correct(self, log: Sequence[RideLogEntry]) -> Optional[CorrectionResult]:
        """Corrected log + summary, or None to fall back to GPS altitude."""
        with_elevation = await fetch_corrected_elevations(
            log, self.client, self.batch_size
        )
        if with_elevation is None:
            return None
        logger.info("Recalculating metrics with corrected elevation...")
        return recalculate_with_corrected_elevation(with_elevation, self.rider)
