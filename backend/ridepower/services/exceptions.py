"""External service errors."""


class ServiceError(Exception):
    """Base error for external data services."""


class ElevationServiceError(ServiceError):
    """Elevation lookup failed or returned an unusable response."""


class WeatherServiceError(ServiceError):
    """Weather lookup failed or returned an unusable response."""
