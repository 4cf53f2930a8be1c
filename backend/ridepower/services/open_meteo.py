"""
Open-Meteo clients.

- ElevationClient: batched terrain elevation lookup (post-ride correction)
- WeatherClient: current wind at a coordinate (live aerodynamic term)
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Type

import httpx

from ridepower.config import settings
from ridepower.shared.constants import KMH_PER_MS

from .exceptions import ElevationServiceError, ServiceError, WeatherServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindReading:
    """Current wind. Direction is where the wind comes from."""
    speed_ms: float
    direction_deg: float


class OpenMeteoClient:
    """Base class: one GET per call, errors raised as ServiceError subclasses."""

    error_class: Type[ServiceError] = ServiceError

    def __init__(
        self,
        api_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport

    async def _get_json(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(self.api_url, params=params)
        except httpx.HTTPError as e:
            raise self.error_class(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise self.error_class(
                f"HTTP error {response.status_code}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise self.error_class(f"Invalid JSON response: {e}") from e


class ElevationClient(OpenMeteoClient):
    """
    Terrain elevation for lists of coordinates.

    The caller is responsible for keeping each request within the
    service's batch size.
    """

    error_class = ElevationServiceError

    def __init__(self, api_url: Optional[str] = None, **kwargs):
        super().__init__(api_url or settings.elevation_api_url, **kwargs)

    async def lookup(
        self,
        latitudes: Sequence[float],
        longitudes: Sequence[float]
    ) -> list[float]:
        """
        Get elevations in input order.

        Raises:
            ElevationServiceError: transport/HTTP error, or the response
                does not hold exactly one elevation per point
        """
        if len(latitudes) != len(longitudes):
            raise ValueError("latitudes and longitudes differ in length")

        data = await self._get_json({
            "latitude": ",".join(f"{lat:.5f}" for lat in latitudes),
            "longitude": ",".join(f"{lon:.5f}" for lon in longitudes),
        })

        elevations = data.get("elevation") if isinstance(data, dict) else None
        if not isinstance(elevations, list) or len(elevations) != len(latitudes):
            raise ElevationServiceError(
                "Elevation API response mismatched or missing data"
            )
        try:
            return [float(e) for e in elevations]
        except (TypeError, ValueError) as e:
            raise ElevationServiceError(f"Non-numeric elevation in response: {e}") from e


class WeatherClient(OpenMeteoClient):
    """Current 10 m wind speed/direction."""

    error_class = WeatherServiceError

    def __init__(self, api_url: Optional[str] = None, **kwargs):
        super().__init__(api_url or settings.weather_api_url, **kwargs)

    async def fetch_wind(self, latitude: float, longitude: float) -> WindReading:
        """
        Raises:
            WeatherServiceError: request failed or wind missing from response
        """
        data = await self._get_json({
            "latitude": f"{latitude:.2f}",
            "longitude": f"{longitude:.2f}",
            "current": "wind_speed_10m,wind_direction_10m",
            "forecast_days": 1,
        })

        current = data.get("current") if isinstance(data, dict) else None
        if (
            not isinstance(current, dict)
            or current.get("wind_speed_10m") is None
            or current.get("wind_direction_10m") is None
        ):
            raise WeatherServiceError(f"Wind data not found in API response: {data}")

        return WindReading(
            speed_ms=float(current["wind_speed_10m"]) / KMH_PER_MS,
            direction_deg=float(current["wind_direction_10m"]),
        )

    async def get_wind(
        self,
        latitude: Optional[float],
        longitude: Optional[float]
    ) -> Optional[WindReading]:
        """Current wind, or None when unavailable for any reason."""
        if latitude is None or longitude is None:
            logger.info("Cannot fetch weather data: position unknown")
            return None
        try:
            wind = await self.fetch_wind(latitude, longitude)
        except WeatherServiceError as e:
            logger.warning(f"Error fetching weather data: {e}")
            return None

        logger.info(
            f"Updated wind: {wind.speed_ms:.2f} m/s from {wind.direction_deg:.0f}°"
        )
        return wind
