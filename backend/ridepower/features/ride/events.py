"""
Inbound ride events.

Position fixes, sensor frames, timer ticks and wind updates all reach
the session as one of these and are handled one at a time.
"""

from dataclasses import dataclass
from typing import Union

from ridepower.services import WindReading

from .exceptions import PositionSourceError
from .models import PositionSample


@dataclass(frozen=True)
class PositionEvent:
    sample: PositionSample


@dataclass(frozen=True)
class PositionErrorEvent:
    error: PositionSourceError


@dataclass(frozen=True)
class SensorFrameEvent:
    data: bytes


@dataclass(frozen=True)
class FailsafeCheckEvent:
    """Periodic staleness check."""


@dataclass(frozen=True)
class WindUpdateEvent:
    wind: WindReading


RideEvent = Union[
    PositionEvent,
    PositionErrorEvent,
    SensorFrameEvent,
    FailsafeCheckEvent,
    WindUpdateEvent,
]
