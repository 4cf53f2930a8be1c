"""
Tests for RideSession: lifecycle, event handling and finalization.

Each test drives the session inside asyncio.run() with a manual clock
and timers slowed down so they never fire on their own.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from ridepower.config import Settings
from ridepower.features.power import RiderConfigurationError
from ridepower.features.ride import (
    FailsafeCheckEvent,
    PositionErrorCode,
    PositionErrorEvent,
    PositionEvent,
    PositionSourceError,
    RealPosition,
    RideSession,
    RideStateError,
    RideStatus,
    SensorFrameEvent,
    WindUpdateEvent,
)
from ridepower.services import ElevationServiceError, WindReading
from ridepower.shared.constants import AltitudeSource

LAT, LON = 51.0447, -114.0719

QUIET_CONFIG = Settings(failsafe_interval_seconds=3600, weather_refresh_seconds=3600)


class ManualClock:
    """Session clock moved by the test."""

    def __init__(self, now_ms: float = 0.0):
        self.now_ms = now_ms

    def __call__(self) -> float:
        return self.now_ms


class CountingWakeLock:
    def __init__(self):
        self.held = False
        self.acquired = 0
        self.released = 0

    async def acquire(self):
        self.held = True
        self.acquired += 1

    async def release(self):
        self.held = False
        self.released += 1


def fix(clock: ManualClock, lat=LAT, altitude_m=100.0, speed_kmh=20.0) -> PositionEvent:
    return PositionEvent(RealPosition(
        latitude=lat,
        longitude=LON,
        altitude_m=altitude_m,
        speed_ms=speed_kmh / 3.6,
        accuracy_m=3.0,
        timestamp_ms=clock.now_ms,
    ))


def make_session(rider, clock=None, **kwargs) -> RideSession:
    return RideSession(rider, clock=clock or ManualClock(), config=QUIET_CONFIG, **kwargs)


def elevation_client(offset: float = 1000.0):
    client = MagicMock()
    client.lookup = AsyncMock(
        side_effect=lambda lats, lons: [offset + i for i in range(len(lats))]
    )
    return client


# =============================================================================
# Test Lifecycle
# =============================================================================

class TestLifecycle:
    """Tests for start/pause/resume/stop transitions."""

    def test_requires_rider(self):
        with pytest.raises(RiderConfigurationError):
            RideSession(None)

    def test_full_cycle(self, rider):
        wake_lock = CountingWakeLock()
        session = make_session(rider, wake_lock=wake_lock)

        async def scenario():
            await session.start()
            assert session.status == RideStatus.ACTIVE
            assert wake_lock.held

            await session.pause()
            assert session.status == RideStatus.PAUSED
            assert not wake_lock.held

            await session.resume()
            assert session.status == RideStatus.ACTIVE
            assert wake_lock.held

            return await session.stop()

        result = asyncio.run(scenario())

        assert session.status == RideStatus.IDLE
        assert result.log == []
        assert wake_lock.acquired == 2
        assert wake_lock.released == 2
        assert not wake_lock.held

    @pytest.mark.parametrize("action", ["pause", "resume", "stop"])
    def test_illegal_when_idle(self, rider, action):
        session = make_session(rider)
        with pytest.raises(RideStateError):
            asyncio.run(getattr(session, action)())

    def test_start_twice(self, rider):
        session = make_session(rider)

        async def scenario():
            await session.start()
            try:
                await session.start()
            finally:
                await session.stop()

        with pytest.raises(RideStateError):
            asyncio.run(scenario())

    def test_resume_while_active(self, rider):
        session = make_session(rider)

        async def scenario():
            async with session.riding():
                await session.resume()

        with pytest.raises(RideStateError):
            asyncio.run(scenario())
        assert session.status == RideStatus.IDLE

    def test_riding_stops_on_error(self, rider):
        wake_lock = CountingWakeLock()
        session = make_session(rider, wake_lock=wake_lock)

        async def scenario():
            async with session.riding():
                await session.connect_sensor()
                raise RuntimeError("display crashed")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())

        assert session.status == RideStatus.IDLE
        assert not wake_lock.held
        assert not session.sensor.connected
        assert session.result is not None

    def test_restart_resets_state(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                await session.handle_event(fix(clock))
            await session.start()
            await session.stop()

        asyncio.run(scenario())
        assert session.state.log == []
        assert session.result.log == []


# =============================================================================
# Test Event Handling
# =============================================================================

class TestEvents:
    """Tests for handle_event and the dispatch loop."""

    def test_positions_processed_while_active(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                await session.handle_event(fix(clock))
                clock.now_ms += 5000
                await session.handle_event(fix(clock, lat=LAT + 0.00025, altitude_m=105.0))

        asyncio.run(scenario())

        assert len(session.result.log) == 2
        assert session.result.log[1].gradient_percent == pytest.approx(18.0)
        assert session.result.summary.elapsed_ms == pytest.approx(5000)

    def test_positions_ignored_while_paused(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                await session.handle_event(fix(clock))
                await session.pause()
                clock.now_ms += 1000
                return await session.handle_event(fix(clock, lat=LAT + 0.0001))

        assert asyncio.run(scenario()) is None
        assert len(session.result.log) == 1

    def test_pause_gap_not_counted(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                await session.handle_event(fix(clock))
                clock.now_ms += 1000
                await session.handle_event(fix(clock, lat=LAT + 0.0001))
                await session.pause()
                clock.now_ms += 600_000
                await session.resume()
                clock.now_ms += 1000
                await session.handle_event(fix(clock, lat=LAT + 0.0002))

        asyncio.run(scenario())
        assert session.result.summary.elapsed_ms == pytest.approx(2000)

    def test_submitted_events_are_dispatched(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                session.submit(fix(clock))
                session.submit(WindUpdateEvent(WindReading(3.0, 200.0)))
                await asyncio.sleep(0.01)
                return len(session.state.log), session.state.wind_speed_ms

        assert asyncio.run(scenario()) == (1, 3.0)

    def test_failsafe_check_generates_synthetic_tick(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                await session.handle_event(fix(clock))
                clock.now_ms += 2000
                quiet = await session.handle_event(FailsafeCheckEvent())
                clock.now_ms += 1000
                stale = await session.handle_event(FailsafeCheckEvent())
                return quiet, stale

        quiet, stale = asyncio.run(scenario())
        assert quiet is None
        assert stale.synthetic is True
        assert stale.latitude == LAT

    def test_bad_sensor_frame_is_logged(self, rider):
        session = make_session(rider)

        async def scenario():
            async with session.riding():
                await session.connect_sensor()
                await session.handle_event(SensorFrameEvent(b"\x01\x02"))
                return session.sensor.speed_kmh

        assert asyncio.run(scenario()) is None

    def test_sensor_speed_used(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                await session.connect_sensor()
                await session.handle_event(SensorFrameEvent(bytes.fromhex("01000000000000")))
                await session.handle_event(SensorFrameEvent(bytes.fromhex("01050000000002")))
                return await session.handle_event(fix(clock, speed_kmh=10.0))

        entry = asyncio.run(scenario())
        assert entry.speed_kmh == pytest.approx(75.8)
        assert entry.sensor_speed_kmh == pytest.approx(75.8)

    @pytest.mark.parametrize("code", list(PositionErrorCode))
    def test_position_error_stops_ride(self, rider, code):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            await session.start()
            await session.handle_event(fix(clock))
            await session.handle_event(PositionErrorEvent(PositionSourceError(code, "denied")))

        asyncio.run(scenario())
        assert session.status == RideStatus.IDLE
        assert len(session.result.log) == 1

    def test_position_error_via_dispatch_loop(self, rider):
        session = make_session(rider)

        async def scenario():
            await session.start()
            session.submit(PositionErrorEvent(
                PositionSourceError(PositionErrorCode.PERMISSION_DENIED)
            ))
            await asyncio.sleep(0.01)

        asyncio.run(scenario())
        assert session.status == RideStatus.IDLE
        assert session.result is not None

    @pytest.mark.parametrize("code", [PositionErrorCode.TIMEOUT, PositionErrorCode.UNKNOWN])
    def test_timeout_and_unknown_errors_stop_ride(self, rider, code):
        session = make_session(rider)

        async def scenario():
            async with session.riding():
                await session.handle_event(PositionErrorEvent(PositionSourceError(code)))
                return session.status

        assert asyncio.run(scenario()) == RideStatus.IDLE
        assert session.result is not None

    def test_live_metrics(self, rider):
        clock = ManualClock()
        session = make_session(rider, clock)

        async def scenario():
            async with session.riding():
                await session.handle_event(fix(clock))
                return session.live_metrics()

        metrics = asyncio.run(scenario())
        assert metrics.status == RideStatus.ACTIVE
        assert metrics.speed_kmh == pytest.approx(20.0)
        assert metrics.cadence_rpm == 80
        assert metrics.sensor_speed_kmh is None
        assert metrics.to_dict()["elapsed"] == "00:00:00"


# =============================================================================
# Test Finalization
# =============================================================================

class TestFinalization:
    """Tests for the stop summary and elevation correction."""

    def _ride(self, session, clock, altitudes):
        async def scenario():
            async with session.riding():
                for i, altitude in enumerate(altitudes):
                    await session.handle_event(
                        fix(clock, lat=LAT + i * 0.0001, altitude_m=altitude)
                    )
                    clock.now_ms += 1000
            return session.result

        return asyncio.run(scenario())

    def test_gps_summary_without_elevation_client(self, rider):
        clock = ManualClock()
        result = self._ride(make_session(rider, clock), clock, [100.0, 105.0, 103.0])

        summary = result.summary
        assert summary.altitude_source == AltitudeSource.GPS
        assert not summary.corrected
        assert summary.gps_ascent_m == pytest.approx(5.0)
        assert summary.gps_descent_m == pytest.approx(2.0)
        assert summary.average_power_corrected_w is None
        assert summary.elapsed_ms == pytest.approx(2000)

    def test_corrected_summary(self, rider):
        clock = ManualClock()
        client = elevation_client(offset=1000.0)
        session = make_session(rider, clock, elevation_client=client)

        result = self._ride(session, clock, [100.0, 100.0, 100.0])

        assert result.summary.altitude_source == AltitudeSource.API
        assert result.summary.total_ascent_m == pytest.approx(2.0)
        assert result.summary.total_descent_m == 0.0
        assert [e.altitude_corrected_m for e in result.log] == [1000.0, 1001.0, 1002.0]
        assert all(e.altitude_source == AltitudeSource.API for e in result.log)
        # the live log is left untouched
        assert all(e.altitude_corrected_m is None for e in session.state.log)

    def test_correction_failure_falls_back_to_gps(self, rider):
        clock = ManualClock()
        client = MagicMock()
        client.lookup = AsyncMock(side_effect=ElevationServiceError("HTTP error 503"))
        session = make_session(rider, clock, elevation_client=client)

        result = self._ride(session, clock, [100.0, 101.0])

        assert result.summary.altitude_source == AltitudeSource.GPS
        assert all(e.altitude_corrected_m is None for e in result.log)

    def test_empty_ride_skips_correction(self, rider):
        client = elevation_client()
        session = make_session(rider, elevation_client=client)

        result = self._ride(session, ManualClock(), [])

        client.lookup.assert_not_awaited()
        assert result.summary.distance_km == 0.0
        assert result.summary.average_power_w == 0.0
