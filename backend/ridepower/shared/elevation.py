"""
Elevation processing utilities.

This is the SINGLE SOURCE OF TRUTH for elevation calculations.
"""
from typing import List, Tuple


def calculate_elevation_changes(
    elevations: List[float]
) -> Tuple[float, float]:
    """
    Calculate total elevation gain and loss.

    Args:
        elevations: List of elevation values

    Returns:
        Tuple of (gain_m, loss_m)
    """
    gain = 0.0
    loss = 0.0

    for i in range(1, len(elevations)):
        gain, loss = accumulate_elevation_change(
            gain, loss, elevations[i] - elevations[i - 1]
        )

    return gain, loss


def accumulate_elevation_change(
    gain: float,
    loss: float,
    diff: float
) -> Tuple[float, float]:
    """Add one signed altitude delta to running (gain, loss) totals."""
    if diff > 0:
        gain += diff
    else:
        loss += abs(diff)
    return gain, loss
