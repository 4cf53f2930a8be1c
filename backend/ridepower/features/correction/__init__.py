"""
Post-ride elevation correction module.

Usage:
    from ridepower.features.correction import ElevationCorrectionService
"""

from .service import (
    ElevationCorrectionService,
    CorrectionResult,
    CorrectionSummary,
    fetch_corrected_elevations,
    recalculate_with_corrected_elevation,
)

__all__ = [
    "ElevationCorrectionService",
    "CorrectionResult",
    "CorrectionSummary",
    "fetch_corrected_elevations",
    "recalculate_with_corrected_elevation",
]
