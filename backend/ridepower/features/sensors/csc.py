"""
Cycling Speed and Cadence measurement decoding.

Frame layout (little-endian):
    byte 0      flags (bit0 = wheel data, bit1 = crank data)
    wheel data  uint32 cumulative wheel revolutions,
                uint16 last wheel event time (1/1024 s)
    crank data  uint16 cumulative crank revolutions,
                uint16 last crank event time (1/1024 s)

Both counters and both event times wrap, so every delta is corrected
by one modulus when it comes out negative.
"""

import struct
from dataclasses import dataclass
from typing import Optional

from ridepower.shared.constants import KMH_PER_MS

WHEEL_DATA_PRESENT = 0x01
CRANK_DATA_PRESENT = 0x02

EVENT_TIME_UNITS_PER_S = 1024
EVENT_TIME_WRAP_S = 65536 / EVENT_TIME_UNITS_PER_S  # 64 s
WHEEL_REVOLUTIONS_MODULUS = 0xFFFFFFFF + 1
CRANK_REVOLUTIONS_MODULUS = 65536

# Deltas at or below this are treated as duplicate events
MIN_EVENT_TIME_DELTA_S = 0.001

_WHEEL_FORMAT = struct.Struct("<IH")
_CRANK_FORMAT = struct.Struct("<HH")


class SensorFrameError(ValueError):
    """Measurement frame is shorter than its flags declare."""


@dataclass(frozen=True)
class CSCMeasurement:
    """One decoded frame. Fields are None when the flag is not set."""
    wheel_revolutions: Optional[int] = None
    wheel_event_time_s: Optional[float] = None
    crank_revolutions: Optional[int] = None
    crank_event_time_s: Optional[float] = None


@dataclass
class SensorCounterState:
    """Last (count, event time) pair of each counter, kept for the next delta."""
    last_wheel_revolutions: Optional[int] = None
    last_wheel_event_time_s: Optional[float] = None
    last_crank_revolutions: Optional[int] = None
    last_crank_event_time_s: Optional[float] = None

    def reset(self) -> None:
        self.last_wheel_revolutions = None
        self.last_wheel_event_time_s = None
        self.last_crank_revolutions = None
        self.last_crank_event_time_s = None


def parse_csc_measurement(data: bytes) -> CSCMeasurement:
    """
    Parse a raw measurement frame.

    Raises:
        SensorFrameError: frame is empty or truncated
    """
    if len(data) < 1:
        raise SensorFrameError("Empty measurement frame")

    flags = data[0]
    index = 1
    wheel_revs = wheel_time = crank_revs = crank_time = None

    try:
        if flags & WHEEL_DATA_PRESENT:
            wheel_revs, raw_time = _WHEEL_FORMAT.unpack_from(data, index)
            wheel_time = raw_time / EVENT_TIME_UNITS_PER_S
            index += _WHEEL_FORMAT.size

        if flags & CRANK_DATA_PRESENT:
            crank_revs, raw_time = _CRANK_FORMAT.unpack_from(data, index)
            crank_time = raw_time / EVENT_TIME_UNITS_PER_S
    except struct.error as e:
        raise SensorFrameError(f"Truncated measurement frame (flags=0x{flags:02x}): {e}")

    return CSCMeasurement(
        wheel_revolutions=wheel_revs,
        wheel_event_time_s=wheel_time,
        crank_revolutions=crank_revs,
        crank_event_time_s=crank_time,
    )


def _event_time_delta(current_s: float, last_s: float) -> float:
    delta = current_s - last_s
    if delta < 0:
        delta += EVENT_TIME_WRAP_S
    return delta


def _revolution_delta(current: int, last: int, modulus: int) -> int:
    delta = current - last
    if delta < 0:
        delta += modulus
    return delta


class CSCDecoder:
    """
    Turns successive measurement frames into speed and cadence.

    The first frame after construction or reset() only seeds the
    counters; speed and cadence stay None until a second frame arrives.
    """

    def __init__(self, wheel_circumference_m: float):
        self.wheel_circumference_m = wheel_circumference_m
        self.counters = SensorCounterState()
        self.speed_kmh: Optional[float] = None
        self.cadence_rpm: Optional[float] = None

    def reset(self) -> None:
        """Forget all history (device disconnected)."""
        self.counters.reset()
        self.speed_kmh = None
        self.cadence_rpm = None

    def decode(self, data: bytes) -> CSCMeasurement:
        """Parse a frame and update speed/cadence from the counter deltas."""
        measurement = parse_csc_measurement(data)
        counters = self.counters

        if measurement.wheel_revolutions is not None:
            if (
                counters.last_wheel_revolutions is not None
                and counters.last_wheel_event_time_s is not None
                and self.wheel_circumference_m
            ):
                time_delta = _event_time_delta(
                    measurement.wheel_event_time_s, counters.last_wheel_event_time_s
                )
                if time_delta > MIN_EVENT_TIME_DELTA_S:
                    revs = _revolution_delta(
                        measurement.wheel_revolutions,
                        counters.last_wheel_revolutions,
                        WHEEL_REVOLUTIONS_MODULUS,
                    )
                    distance_m = revs * self.wheel_circumference_m
                    self.speed_kmh = distance_m / time_delta * KMH_PER_MS
            counters.last_wheel_revolutions = measurement.wheel_revolutions
            counters.last_wheel_event_time_s = measurement.wheel_event_time_s

        if measurement.crank_revolutions is not None:
            if (
                counters.last_crank_revolutions is not None
                and counters.last_crank_event_time_s is not None
            ):
                time_delta = _event_time_delta(
                    measurement.crank_event_time_s, counters.last_crank_event_time_s
                )
                if time_delta > MIN_EVENT_TIME_DELTA_S:
                    revs = _revolution_delta(
                        measurement.crank_revolutions,
                        counters.last_crank_revolutions,
                        CRANK_REVOLUTIONS_MODULUS,
                    )
                    self.cadence_rpm = revs / time_delta * 60
            counters.last_crank_revolutions = measurement.crank_revolutions
            counters.last_crank_event_time_s = measurement.crank_event_time_s

        return measurement
