"""
Ride Export Service

Renders a finished ride log as CSV (one row per tick) or as a GPX track.
"""

import csv
import io
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import gpxpy
import gpxpy.gpx

from ridepower.shared.constants import AltitudeSource
from ridepower.shared.formatters import format_value
from ridepower.shared.ride_types import RideLogEntry

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Timestamp (s)", "Abs GPS Timestamp", "Velocity (km/h)",
    "Power (W) (Original)", "Power Corrected (W)",
    "Longitude (X)", "Latitude (Y)",
    "Altitude GPS (Z) (m)", "Altitude API Corrected (Z) (m)", "Altitude Source",
    "Gradient GPS (%)", "Gradient Corrected (%)",
    "Cadence (RPM)", "GPS Accuracy (m)", "Synthetic Tick",
    "Bike Bearing (deg)", "Wind Speed (m/s)", "Wind Direction (deg)",
    "Sensor Speed (km/h)", "Sensor Cadence (RPM)", "Gear Ratio",
]


def _first_available(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _abs_timestamp(entry: RideLogEntry) -> Optional[int]:
    if entry.abs_timestamp_ms is None:
        return None
    return int(entry.abs_timestamp_ms)


def csv_row(entry: RideLogEntry) -> List[str]:
    """
    One CSV row.

    Corrected columns fall back to the GPS values when the entry was
    never corrected.
    """
    altitude_source = entry.altitude_source or AltitudeSource.GPS
    values = [
        entry.elapsed_s,
        _abs_timestamp(entry),
        entry.speed_kmh,
        entry.power_w,
        _first_available(entry.power_corrected_w, entry.power_w),
        entry.longitude,
        entry.latitude,
        entry.altitude_m,
        _first_available(entry.altitude_corrected_m, entry.altitude_m),
        altitude_source.value,
        entry.gradient_percent,
        _first_available(entry.gradient_corrected_percent, entry.gradient_percent),
        entry.cadence_rpm,
        entry.gps_accuracy_m,
        "1" if entry.synthetic else "0",
        entry.bearing_deg,
        entry.wind_speed_ms,
        entry.wind_direction_deg,
        entry.sensor_speed_kmh,
        entry.sensor_cadence_rpm,
        entry.gear_ratio,
    ]
    return [format_value(value) for value in values]


def _point_time(entry: RideLogEntry) -> Optional[datetime]:
    if entry.abs_timestamp_ms is None:
        return None
    return datetime.fromtimestamp(entry.abs_timestamp_ms / 1000, tz=timezone.utc)


class RideExportService:
    """Service for rendering ride logs."""

    @staticmethod
    def to_csv(log: Sequence[RideLogEntry]) -> str:
        """
        Render the log as CSV text.

        Unavailable values are written as 'N/A'.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for entry in log:
            writer.writerow(csv_row(entry))
        return buffer.getvalue()

    @staticmethod
    def to_gpx(log: Sequence[RideLogEntry], name: Optional[str] = None) -> str:
        """
        Render the logged coordinates as a single-segment GPX track.

        Entries without coordinates are skipped. Elevation prefers the
        corrected altitude.
        """
        gpx = gpxpy.gpx.GPX()
        track = gpxpy.gpx.GPXTrack(name=name)
        segment = gpxpy.gpx.GPXTrackSegment()
        track.segments.append(segment)
        gpx.tracks.append(track)

        skipped = 0
        for entry in log:
            if not entry.has_coordinates:
                skipped += 1
                continue
            segment.points.append(gpxpy.gpx.GPXTrackPoint(
                latitude=entry.latitude,
                longitude=entry.longitude,
                elevation=_first_available(entry.altitude_corrected_m, entry.altitude_m),
                time=_point_time(entry),
            ))

        if skipped:
            logger.info(f"GPX export skipped {skipped} entries without coordinates")
        return gpx.to_xml()

    @staticmethod
    def filename(extension: str, now: Optional[datetime] = None) -> str:
        """Download name, e.g. ride_data_20240131_0915.csv"""
        now = now or datetime.now()
        return f"ride_data_{now:%Y%m%d}_{now:%H%M}.{extension}"
