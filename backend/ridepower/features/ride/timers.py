"""
Periodic ride timers.

- FailsafeTicker: keeps the ride clock and log moving when the position
  source stalls, by injecting synthetic samples.
- WeatherRefresher: refreshes wind for the current position.

Both only post events; the session applies them.
"""

import asyncio
import logging
from typing import Callable, Optional, Tuple

from ridepower.services import WeatherClient

from .events import FailsafeCheckEvent, RideEvent, WindUpdateEvent
from .models import RideState, SyntheticPosition

logger = logging.getLogger(__name__)

Submit = Callable[[RideEvent], None]


class FailsafeTicker:
    """
    Synthetic tick generator.

    Staleness is measured from the last sample the position source
    delivered, so a stalled source gets one synthetic tick per check
    until real samples resume.
    """

    def __init__(self, interval_s: float, stale_threshold_ms: float):
        self.interval_s = interval_s
        self.stale_threshold_ms = stale_threshold_ms

    def is_stale(self, state: RideState, now_ms: float) -> bool:
        return now_ms - state.last_real_sample_at_ms > self.stale_threshold_ms

    def check(self, state: RideState, now_ms: float) -> Optional[SyntheticPosition]:
        """Placeholder sample at the last known position, if the source is stale."""
        if not self.is_stale(state, now_ms):
            return None
        logger.debug("Failsafe: GPS stale or stationary, generating synthetic tick")
        return SyntheticPosition(
            latitude=state.current_latitude,
            longitude=state.current_longitude,
            altitude_m=state.current_altitude_m,
            timestamp_ms=now_ms,
        )

    async def run(self, submit: Submit) -> None:
        """Post a staleness check every interval until cancelled."""
        while True:
            await asyncio.sleep(self.interval_s)
            submit(FailsafeCheckEvent())


class WeatherRefresher:
    """Fetch wind shortly after start, then on a fixed period."""

    def __init__(
        self,
        client: WeatherClient,
        initial_delay_s: float,
        interval_s: float,
    ):
        self.client = client
        self.initial_delay_s = initial_delay_s
        self.interval_s = interval_s

    async def refresh(
        self,
        position: Tuple[Optional[float], Optional[float]],
        submit: Submit,
    ) -> bool:
        """One fetch; a failure keeps the previous wind."""
        wind = await self.client.get_wind(*position)
        if wind is None:
            return False
        submit(WindUpdateEvent(wind))
        return True

    async def run(
        self,
        position: Callable[[], Tuple[Optional[float], Optional[float]]],
        is_active: Callable[[], bool],
        submit: Submit,
    ) -> None:
        """Refresh loop; skips rounds while paused or without a fix."""
        await asyncio.sleep(self.initial_delay_s)
        while True:
            lat, lon = position()
            if is_active() and lat is not None and lon is not None:
                await self.refresh((lat, lon), submit)
            await asyncio.sleep(self.interval_s)
