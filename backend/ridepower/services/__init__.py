"""
External data services.

Usage:
    from ridepower.services import ElevationClient, WeatherClient
"""

from .exceptions import ServiceError, ElevationServiceError, WeatherServiceError
from .open_meteo import ElevationClient, WeatherClient, WindReading

__all__ = [
    "ServiceError",
    "ElevationServiceError",
    "WeatherServiceError",
    "ElevationClient",
    "WeatherClient",
    "WindReading",
]
