"""
Speed/cadence sensor module.

Usage:
    from ridepower.features.sensors import SpeedCadenceSensor, CSCDecoder

Components:
- parse_csc_measurement: raw frame -> counters
- CSCDecoder: wrap-aware deltas -> speed (km/h) and cadence (rpm)
- SpeedCadenceSensor: connection lifecycle around a decoder
"""

from .csc import (
    CSCDecoder,
    CSCMeasurement,
    SensorCounterState,
    SensorFrameError,
    parse_csc_measurement,
    WHEEL_DATA_PRESENT,
    CRANK_DATA_PRESENT,
)
from .device import SpeedCadenceSensor, SensorTransport

__all__ = [
    "CSCDecoder",
    "CSCMeasurement",
    "SensorCounterState",
    "SensorFrameError",
    "parse_csc_measurement",
    "WHEEL_DATA_PRESENT",
    "CRANK_DATA_PRESENT",
    "SpeedCadenceSensor",
    "SensorTransport",
]
