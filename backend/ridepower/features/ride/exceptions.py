"""Ride errors."""

from enum import Enum


class RideStateError(Exception):
    """Operation not allowed in the ride's current state."""


class PositionErrorCode(str, Enum):
    """Failure reported by the position source."""
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class PositionSourceError(Exception):
    """Position source failure, as reported to the ride."""

    def __init__(self, code: PositionErrorCode, message: str = ""):
        self.code = code
        self.message = message
        super().__init__(f"GPS error ({code.value}): {message or 'no details'}")
