"""
Ride export module.

Usage:
    from ridepower.features.export import RideExportService

    csv_text = RideExportService.to_csv(result.log)
    gpx_xml = RideExportService.to_gpx(result.log, name="Morning ride")
"""

from .service import RideExportService, CSV_HEADERS, csv_row

__all__ = [
    "RideExportService",
    "CSV_HEADERS",
    "csv_row",
]
