"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import List

from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === External services ===
    elevation_api_url: str = Field(
        default="https://api.open-meteo.com/v1/elevation",
        description="Elevation API endpoint"
    )
    weather_api_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Current-weather API endpoint (wind)"
    )
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    # Points per elevation request
    elevation_batch_size: int = Field(default=200, gt=0)

    # === Ride timers ===
    failsafe_interval_seconds: float = Field(default=1.0, gt=0)
    stale_gps_threshold_ms: float = Field(default=2500.0, gt=0)
    weather_initial_delay_seconds: float = Field(default=3.0, ge=0)
    weather_refresh_seconds: float = Field(default=5 * 60, gt=0)

    # === Rider defaults ===
    rider_system_mass_kg: float = Field(default=75.0)
    rider_wheel_circumference_mm: float = Field(default=2105.0)
    rider_crr: float = Field(default=0.005)
    rider_cda_m2: float = Field(default=0.320)
    rider_air_density: float = Field(default=1.225)
    rider_default_cadence_rpm: int = Field(default=80)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
