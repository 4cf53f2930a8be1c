"""
Live ride module.

Usage:
    from ridepower.features.ride import RideSession, RealPosition, PositionEvent

    session = RideSession(rider)
    async with session.riding():
        await session.handle_event(PositionEvent(RealPosition(51.04, -114.07)))
    result = session.result

Components:
- RideSession: lifecycle, event dispatch, timers, sensor, finalization
- process_position_update: one tick of telemetry fusion
- FailsafeTicker / WeatherRefresher: periodic timers
- RideState, RideLogEntry, RideSummary: ride data
"""

from .exceptions import RideStateError, PositionErrorCode, PositionSourceError
from .models import (
    RideStatus,
    RealPosition,
    SyntheticPosition,
    PositionSample,
    RideState,
    RideLogEntry,
    LiveMetrics,
    RideSummary,
    RideResult,
)
from .events import (
    PositionEvent,
    PositionErrorEvent,
    SensorFrameEvent,
    FailsafeCheckEvent,
    WindUpdateEvent,
    RideEvent,
)
from .processor import process_position_update, resolve_speed_kmh, resolve_cadence_rpm, gear_ratio
from .timers import FailsafeTicker, WeatherRefresher
from .resources import WakeLock, NullWakeLock
from .session import RideSession

__all__ = [
    # Errors
    "RideStateError",
    "PositionErrorCode",
    "PositionSourceError",
    # Models
    "RideStatus",
    "RealPosition",
    "SyntheticPosition",
    "PositionSample",
    "RideState",
    "RideLogEntry",
    "LiveMetrics",
    "RideSummary",
    "RideResult",
    # Events
    "PositionEvent",
    "PositionErrorEvent",
    "SensorFrameEvent",
    "FailsafeCheckEvent",
    "WindUpdateEvent",
    "RideEvent",
    # Processing
    "process_position_update",
    "resolve_speed_kmh",
    "resolve_cadence_rpm",
    "gear_ratio",
    "FailsafeTicker",
    "WeatherRefresher",
    # Resources
    "WakeLock",
    "NullWakeLock",
    # Session
    "RideSession",
]
