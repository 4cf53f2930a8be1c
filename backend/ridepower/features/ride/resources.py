"""
Platform resources held during a ride.

The screen wake lock is platform specific; the session only needs
acquire/release.
"""

from typing import Protocol


class WakeLock(Protocol):
    """Keeps the device awake while the ride is active."""

    async def acquire(self) -> None:
        ...

    async def release(self) -> None:
        ...


class NullWakeLock:
    """Wake lock for platforms without one; only tracks whether it is held."""

    def __init__(self):
        self.held = False

    async def acquire(self) -> None:
        self.held = True

    async def release(self) -> None:
        self.held = False
