"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.
"""
import math
from typing import Optional

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


def to_radians(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * math.pi / 180


def to_degrees(radians: float) -> float:
    """Convert radians to degrees."""
    return radians * 180 / math.pi


def haversine(
    lat1: Optional[float], lon1: Optional[float],
    lat2: Optional[float], lon2: Optional[float]
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers (0 if any coordinate is unknown)
    """
    if lat1 is None or lon1 is None or lat2 is None or lon2 is None:
        return 0.0

    lat1_rad = to_radians(lat1)
    lat2_rad = to_radians(lat2)
    delta_lat = to_radians(lat2 - lat1)
    delta_lon = to_radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) * math.sin(delta_lat / 2) +
        math.sin(delta_lon / 2) * math.sin(delta_lon / 2) *
        math.cos(lat1_rad) * math.cos(lat2_rad)
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def bearing_degrees(
    lat1: Optional[float], lon1: Optional[float],
    lat2: Optional[float], lon2: Optional[float]
) -> Optional[float]:
    """
    Initial bearing from point 1 to point 2.

    Returns:
        Bearing in degrees, normalized to [0, 360), or None if any
        coordinate is unknown. Identical points give 0.
    """
    if lat1 is None or lon1 is None or lat2 is None or lon2 is None:
        return None

    phi1 = to_radians(lat1)
    phi2 = to_radians(lat2)
    delta_lambda = to_radians(lon2 - lon1)

    y = math.sin(delta_lambda) * math.cos(phi2)
    x = (
        math.cos(phi1) * math.sin(phi2) -
        math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    )
    theta = math.atan2(y, x)

    return (to_degrees(theta) + 360) % 360


def gradient_to_percent(gradient: float) -> float:
    """Convert gradient decimal to percent."""
    return gradient * 100
