"""
Formatting utilities for display and export.

Unavailable values are carried as None throughout the core and only
become the "N/A" marker here.
"""

import math
from typing import Optional, Union

UNAVAILABLE = "N/A"

Number = Union[int, float]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def round_optional(value: Optional[float], digits: int) -> Optional[float]:
    """Round a value that may be unavailable."""
    if value is None:
        return None
    return round(value, digits)


def format_elapsed_time(ms: float) -> str:
    """
    Format milliseconds as 'HH:MM:SS'.

    Args:
        ms: Elapsed time in milliseconds

    Returns:
        Formatted string (e.g., '01:02:03')
    """
    total_seconds = int(ms // 1000)
    hours = total_seconds // 3600
    total_seconds %= 3600
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_value(value: Optional[Union[Number, str]]) -> str:
    """Render a log value, using the unavailable marker for None."""
    if value is None:
        return UNAVAILABLE
    return str(value)
