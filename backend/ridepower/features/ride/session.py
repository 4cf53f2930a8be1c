"""
Ride session.

Owns one ride from start to stop:

    IDLE --start--> ACTIVE --pause--> PAUSED --resume--> ACTIVE
    ACTIVE/PAUSED --stop--> IDLE (log finalized, elevation correction)

Every input (position fixes, sensor frames, timer ticks, wind updates)
is an event handled one at a time on the event loop. Timers and device
callbacks post to `events`; callers that want the resulting log entry
can await handle_event() directly.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from ridepower.config import Settings, settings
from ridepower.features.correction import ElevationCorrectionService
from ridepower.features.power import RiderConfiguration, RiderConfigurationError
from ridepower.features.sensors import SensorFrameError, SensorTransport, SpeedCadenceSensor
from ridepower.services import ElevationClient, WeatherClient
from ridepower.shared.constants import AltitudeSource
from ridepower.shared.elevation import calculate_elevation_changes
from ridepower.shared.ride_types import RideLogEntry

from .events import (
    FailsafeCheckEvent,
    PositionErrorEvent,
    PositionEvent,
    RideEvent,
    SensorFrameEvent,
    WindUpdateEvent,
)
from .exceptions import PositionSourceError, RideStateError
from .models import (
    LiveMetrics,
    PositionSample,
    RideResult,
    RideState,
    RideStatus,
    RideSummary,
)
from .processor import process_position_update
from .resources import NullWakeLock, WakeLock
from .timers import FailsafeTicker, WeatherRefresher

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    """Default session clock: epoch milliseconds, like device fix timestamps."""
    return time.time() * 1000


class RideSession:
    """
    One rider's ride.

    Usage:
        session = RideSession(rider, weather_client=WeatherClient(),
                              elevation_client=ElevationClient())
        async with session.riding():
            await session.handle_event(PositionEvent(sample))
        print(session.result.summary)
    """

    def __init__(
        self,
        rider: RiderConfiguration,
        *,
        sensor: Optional[SpeedCadenceSensor] = None,
        weather_client: Optional[WeatherClient] = None,
        elevation_client: Optional[ElevationClient] = None,
        wake_lock: Optional[WakeLock] = None,
        clock: Optional[Callable[[], float]] = None,
        config: Settings = settings,
    ):
        if rider is None:
            raise RiderConfigurationError("Rider configuration is required to ride")

        self.rider = rider
        self.sensor = sensor
        self.elevation_client = elevation_client
        self.wake_lock = wake_lock or NullWakeLock()
        self.clock = clock or wall_clock_ms
        self.config = config

        self.failsafe = FailsafeTicker(
            config.failsafe_interval_seconds, config.stale_gps_threshold_ms
        )
        self.weather = (
            WeatherRefresher(
                weather_client,
                config.weather_initial_delay_seconds,
                config.weather_refresh_seconds,
            )
            if weather_client is not None else None
        )

        self.status = RideStatus.IDLE
        self.state = RideState()
        self.result: Optional[RideResult] = None
        self.events: asyncio.Queue = asyncio.Queue()

        self._dispatch_task: Optional[asyncio.Task] = None
        self._failsafe_task: Optional[asyncio.Task] = None
        self._weather_task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self.status == RideStatus.ACTIVE

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Begin a new ride with fresh state."""
        if self.status != RideStatus.IDLE:
            raise RideStateError(f"Cannot start a ride while {self.status.value}")

        self.state = RideState(last_real_sample_at_ms=self.clock())
        self.result = None
        self.events = asyncio.Queue()
        self.status = RideStatus.ACTIVE

        self._dispatch_task = asyncio.create_task(self._dispatch_loop())
        self._start_failsafe()
        if self.weather is not None:
            self._weather_task = asyncio.create_task(
                self.weather.run(self._position, lambda: self.active, self.submit)
            )
        await self._acquire_wake_lock()
        logger.info("Ride started")

    async def pause(self) -> None:
        """Suspend tick processing; samples arriving meanwhile are dropped."""
        if self.status != RideStatus.ACTIVE:
            raise RideStateError(f"Cannot pause a ride while {self.status.value}")

        self.status = RideStatus.PAUSED
        await self._cancel(self._failsafe_task)
        self._failsafe_task = None
        await self._release_wake_lock()
        logger.info("Ride paused")

    async def resume(self) -> None:
        """Continue; the paused gap counts as neither time nor distance."""
        if self.status != RideStatus.PAUSED:
            raise RideStateError(f"Cannot resume a ride while {self.status.value}")

        now = self.clock()
        self.state.previous_timestamp_ms = now
        self.state.last_real_sample_at_ms = now
        self.status = RideStatus.ACTIVE
        self._start_failsafe()
        await self._acquire_wake_lock()
        logger.info("Ride resumed")

    async def stop(self) -> RideResult:
        """
        End the ride.

        Timers, the sensor and the wake lock are released before the
        elevation correction starts.
        """
        if self.status == RideStatus.IDLE:
            raise RideStateError("No ride in progress")

        self.status = RideStatus.IDLE
        try:
            await self._cancel(self._failsafe_task)
            await self._cancel(self._weather_task)
            await self._cancel(self._dispatch_task)
        finally:
            self._failsafe_task = self._weather_task = self._dispatch_task = None
            try:
                if self.sensor is not None:
                    await self.sensor.disconnect()
            finally:
                await self._release_wake_lock()

        logger.info(
            f"Ride stopped: {self.state.total_distance_km:.2f} km, "
            f"{len(self.state.log)} log entries"
        )
        self.result = await self._finalize()
        return self.result

    @asynccontextmanager
    async def riding(self):
        """Start a ride and make sure it is stopped on the way out."""
        await self.start()
        try:
            yield self
        finally:
            if self.status != RideStatus.IDLE:
                await self.stop()

    # =========================================================================
    # Events
    # =========================================================================

    def submit(self, event: RideEvent) -> None:
        """Queue an event for the dispatch loop."""
        self.events.put_nowait(event)

    async def handle_event(self, event: RideEvent) -> Optional[RideLogEntry]:
        """Apply one event. Returns the log entry a tick produced, if any."""
        if isinstance(event, PositionEvent):
            return self.process_position(event.sample)

        if isinstance(event, FailsafeCheckEvent):
            if self.active:
                sample = self.failsafe.check(self.state, self.clock())
                if sample is not None:
                    return self.process_position(sample)
            return None

        if isinstance(event, SensorFrameEvent):
            self.handle_sensor_frame(event.data)
            return None

        if isinstance(event, WindUpdateEvent):
            self.state.wind_speed_ms = event.wind.speed_ms
            self.state.wind_direction_deg = event.wind.direction_deg
            return None

        if isinstance(event, PositionErrorEvent):
            await self.handle_position_error(event.error)
            return None

        raise TypeError(f"Unknown ride event: {event!r}")

    def process_position(self, sample: PositionSample) -> Optional[RideLogEntry]:
        """Run one tick; samples outside an active ride are ignored."""
        if not self.active:
            return None
        return process_position_update(
            self.state, sample, self.rider, self.clock(), self.sensor
        )

    def handle_sensor_frame(self, data: bytes) -> None:
        if self.sensor is None:
            logger.debug("Sensor frame ignored: no sensor attached")
            return
        try:
            self.sensor.handle_frame(data)
        except SensorFrameError as e:
            logger.warning(f"Bad sensor frame: {e}")

    async def handle_position_error(self, error: PositionSourceError) -> None:
        """Any position-source failure ends the ride."""
        logger.error(str(error))
        if self.status != RideStatus.IDLE:
            await self.stop()

    # =========================================================================
    # Sensor
    # =========================================================================

    async def connect_sensor(self, transport: Optional[SensorTransport] = None) -> bool:
        """Attach (if needed) and connect the speed/cadence sensor."""
        if self.sensor is None:
            self.sensor = SpeedCadenceSensor(self.rider.wheel_circumference_m, transport)
        return await self.sensor.connect(
            on_frame=lambda data: self.submit(SensorFrameEvent(data))
        )

    async def disconnect_sensor(self) -> None:
        if self.sensor is not None:
            await self.sensor.disconnect()

    # =========================================================================
    # Display
    # =========================================================================

    def live_metrics(self) -> LiveMetrics:
        state = self.state
        return LiveMetrics(
            status=self.status,
            speed_kmh=state.current_speed_kmh,
            power_w=state.current_power_w,
            distance_km=state.total_distance_km,
            elapsed_ms=state.total_elapsed_ms,
            altitude_m=state.current_altitude_m,
            gradient_percent=state.current_gradient_percent,
            cadence_rpm=state.current_cadence_rpm,
            gear_ratio=state.current_gear_ratio,
            average_speed_kmh=state.average_speed_kmh,
            average_power_w=state.average_power_w,
            wind_speed_ms=state.wind_speed_ms,
            wind_direction_deg=state.wind_direction_deg,
            sensor_speed_kmh=self.sensor.speed_kmh if self.sensor else None,
            sensor_cadence_rpm=self.sensor.cadence_rpm if self.sensor else None,
            latitude=state.current_latitude,
            longitude=state.current_longitude,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _position(self):
        return self.state.current_latitude, self.state.current_longitude

    def _start_failsafe(self) -> None:
        self._failsafe_task = asyncio.create_task(self.failsafe.run(self.submit))

    async def _dispatch_loop(self) -> None:
        while self.status != RideStatus.IDLE:
            event = await self.events.get()
            try:
                await self.handle_event(event)
            except Exception as e:
                logger.error(f"Error handling ride event {event!r}: {e}")

    async def _cancel(self, task: Optional[asyncio.Task]) -> None:
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _acquire_wake_lock(self) -> None:
        try:
            await self.wake_lock.acquire()
        except Exception as e:
            logger.warning(f"Wake lock request failed: {e}")

    async def _release_wake_lock(self) -> None:
        try:
            await self.wake_lock.release()
        except Exception as e:
            logger.warning(f"Wake lock release failed: {e}")

    async def _finalize(self) -> RideResult:
        state = self.state
        log = list(state.log)
        gps_ascent, gps_descent = calculate_elevation_changes(
            [entry.altitude_m for entry in log if entry.altitude_m is not None]
        )
        totals = dict(
            distance_km=state.total_distance_km,
            elapsed_ms=state.total_elapsed_ms,
            average_speed_kmh=state.average_speed_kmh,
            average_power_w=state.average_power_w,
            gps_ascent_m=gps_ascent,
            gps_descent_m=gps_descent,
        )

        if log and self.elevation_client is not None:
            service = ElevationCorrectionService(
                self.elevation_client, self.rider, self.config.elevation_batch_size
            )
            corrected = await service.correct(log)
            if corrected is not None:
                summary = corrected.summary
                logger.info(
                    f"Ride corrected: ascent {summary.total_ascent_m:.1f} m, "
                    f"avg power {summary.average_power_corrected_w} W"
                )
                return RideResult(
                    summary=RideSummary(
                        **totals,
                        altitude_source=AltitudeSource.API,
                        average_power_corrected_w=summary.average_power_corrected_w,
                        total_ascent_m=summary.total_ascent_m,
                        total_descent_m=summary.total_descent_m,
                    ),
                    log=corrected.log,
                )
            logger.warning("Elevation correction failed. Using original GPS data.")

        return RideResult(summary=RideSummary(**totals), log=log)
