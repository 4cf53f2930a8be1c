"""
Tests for CSV and GPX ride export.
"""

import csv
import io
from datetime import datetime, timezone

import gpxpy

from ridepower.features.export import CSV_HEADERS, RideExportService, csv_row
from ridepower.shared.constants import AltitudeSource


def parse_csv(text: str):
    return list(csv.reader(io.StringIO(text)))


# =============================================================================
# Test CSV
# =============================================================================

class TestCsvExport:
    """Tests for RideExportService.to_csv."""

    def test_header(self):
        rows = parse_csv(RideExportService.to_csv([]))
        assert rows == [CSV_HEADERS]
        assert len(CSV_HEADERS) == 21
        assert CSV_HEADERS[0] == "Timestamp (s)"
        assert CSV_HEADERS[-1] == "Gear Ratio"

    def test_uncorrected_row(self, make_entry):
        row = csv_row(make_entry())
        assert row == [
            "0", "1700000000000", "20.0", "150", "150",
            "-114.0719", "51.0447",
            "100.0", "100.0", "GPS",
            "0.0", "0.0",
            "80", "5.0", "0",
            "N/A", "0.0", "N/A",
            "N/A", "N/A", "N/A",
        ]

    def test_corrected_row(self, make_entry):
        entry = make_entry(
            altitude_corrected_m=1043.2,
            gradient_corrected_percent=4.5,
            power_corrected_w=212,
            altitude_source=AltitudeSource.API,
            sensor_speed_kmh=31.2,
            sensor_cadence_rpm=88,
            gear_ratio=2.81,
            bearing_deg=271.4,
            wind_direction_deg=200.0,
        )
        row = dict(zip(CSV_HEADERS, csv_row(entry)))

        assert row["Power (W) (Original)"] == "150"
        assert row["Power Corrected (W)"] == "212"
        assert row["Altitude API Corrected (Z) (m)"] == "1043.2"
        assert row["Altitude Source"] == "API"
        assert row["Gradient Corrected (%)"] == "4.5"
        assert row["Bike Bearing (deg)"] == "271.4"
        assert row["Sensor Speed (km/h)"] == "31.2"
        assert row["Sensor Cadence (RPM)"] == "88"
        assert row["Gear Ratio"] == "2.81"

    def test_unavailable_values(self, make_entry):
        entry = make_entry(
            abs_timestamp_ms=None,
            latitude=None,
            longitude=None,
            gps_accuracy_m=None,
            wind_speed_ms=None,
            synthetic=True,
            altitude_source=AltitudeSource.GPS_INVALID_COORDS,
        )
        row = dict(zip(CSV_HEADERS, csv_row(entry)))

        assert row["Abs GPS Timestamp"] == "N/A"
        assert row["Latitude (Y)"] == "N/A"
        assert row["GPS Accuracy (m)"] == "N/A"
        assert row["Wind Speed (m/s)"] == "N/A"
        assert row["Synthetic Tick"] == "1"
        assert row["Altitude Source"] == "GPS (Invalid Coords)"

    def test_zero_sensor_readings_are_written(self, make_entry):
        """A stopped crank on a connected sensor is 0, not unavailable."""
        entry = make_entry(sensor_speed_kmh=0.0, sensor_cadence_rpm=0, power_corrected_w=0)
        row = dict(zip(CSV_HEADERS, csv_row(entry)))

        assert row["Sensor Speed (km/h)"] == "0.0"
        assert row["Sensor Cadence (RPM)"] == "0"
        assert row["Power Corrected (W)"] == "0"

    def test_one_row_per_entry(self, make_entry):
        log = [make_entry(elapsed_s=i) for i in range(4)]
        rows = parse_csv(RideExportService.to_csv(log))
        assert len(rows) == 5
        assert [r[0] for r in rows[1:]] == ["0", "1", "2", "3"]


# =============================================================================
# Test GPX
# =============================================================================

class TestGpxExport:
    """Tests for RideExportService.to_gpx."""

    def test_track_points(self, make_entry):
        log = [
            make_entry(elapsed_s=0, latitude=51.0447, longitude=-114.0719, altitude_m=1040.0),
            make_entry(elapsed_s=1, latitude=None, longitude=None),
            make_entry(
                elapsed_s=2, latitude=51.0450, longitude=-114.0719,
                altitude_m=1041.0, altitude_corrected_m=1050.5,
            ),
        ]
        gpx = gpxpy.parse(RideExportService.to_gpx(log, name="Test ride"))

        assert gpx.tracks[0].name == "Test ride"
        points = gpx.tracks[0].segments[0].points
        assert len(points) == 2
        assert points[0].latitude == 51.0447
        assert points[0].elevation == 1040.0
        assert points[1].elevation == 1050.5

    def test_point_time_from_timestamp(self, make_entry):
        gpx = gpxpy.parse(RideExportService.to_gpx([make_entry()]))
        point = gpx.tracks[0].segments[0].points[0]
        expected = datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
        assert point.time.replace(tzinfo=timezone.utc) == expected

    def test_empty_log(self):
        gpx = gpxpy.parse(RideExportService.to_gpx([]))
        assert gpx.get_points_no() == 0


class TestFilename:
    def test_format(self):
        name = RideExportService.filename("csv", datetime(2024, 1, 31, 9, 5))
        assert name == "ride_data_20240131_0905.csv"
