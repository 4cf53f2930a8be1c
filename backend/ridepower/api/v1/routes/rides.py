"""
Ride Routes

Endpoints for controlling live rides and exporting their logs.
"""

import logging
import uuid
from typing import Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from ridepower.config import settings
from ridepower.features.export import RideExportService
from ridepower.features.power import RiderConfiguration, RiderConfigurationError
from ridepower.features.ride import (
    PositionErrorCode,
    PositionErrorEvent,
    PositionEvent,
    PositionSourceError,
    RealPosition,
    RideSession,
    RideStateError,
    RideStatus,
)
from ridepower.services import ElevationClient, WeatherClient
from ridepower.shared.constants import CdaPreset

logger = logging.getLogger(__name__)

router = APIRouter()

SessionFactory = Callable[[RiderConfiguration], RideSession]


# === Schemas ===

class RiderConfigRequest(BaseModel):
    """Rider/bike parameters for a new ride."""
    system_mass_kg: Optional[float] = Field(default=None, gt=0)
    wheel_circumference_mm: Optional[float] = None
    crr: Optional[float] = Field(default=None, ge=0)
    cda_m2: Optional[float] = Field(default=None, gt=0)
    cda_preset: Optional[CdaPreset] = None
    air_density: Optional[float] = Field(default=None, gt=0)
    default_cadence_rpm: Optional[int] = Field(default=None, ge=0)


class RideStartResponse(BaseModel):
    """Response for a started ride."""
    ride_id: str
    status: str


class PositionRequest(BaseModel):
    """One fix from the position source."""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    altitude_m: Optional[float] = None
    speed_ms: Optional[float] = None
    accuracy_m: Optional[float] = None
    timestamp_ms: Optional[float] = None


class PositionErrorRequest(BaseModel):
    """Failure reported by the position source."""
    code: PositionErrorCode
    message: str = ""


class SensorFrameRequest(BaseModel):
    """Raw measurement frame, hex encoded."""
    data: str


# === Dependencies ===

def default_session_factory(rider: RiderConfiguration) -> RideSession:
    return RideSession(
        rider,
        weather_client=WeatherClient(),
        elevation_client=ElevationClient(),
    )


def get_session_factory() -> SessionFactory:
    """Overridden in tests."""
    return default_session_factory


def get_rides(request: Request) -> Dict[str, RideSession]:
    return request.app.state.rides


def get_ride(ride_id: str, rides: Dict[str, RideSession] = Depends(get_rides)) -> RideSession:
    session = rides.get(ride_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Ride not found")
    return session


def _status(session: RideSession) -> dict:
    return {"status": session.status.value}


# === Lifecycle ===

@router.post("", response_model=RideStartResponse, status_code=201)
async def start_ride(
    config: Optional[RiderConfigRequest] = None,
    rides: Dict[str, RideSession] = Depends(get_rides),
    factory: SessionFactory = Depends(get_session_factory),
):
    """
    Start a new ride.

    Without a body the rider defaults from settings are used.
    """
    try:
        if config is None:
            rider = RiderConfiguration.from_settings(settings)
        else:
            rider = RiderConfiguration.from_mapping(config.model_dump(exclude_none=True))
    except RiderConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    session = factory(rider)
    await session.start()

    ride_id = uuid.uuid4().hex
    rides[ride_id] = session
    logger.info(f"Ride {ride_id} started via API")
    return RideStartResponse(ride_id=ride_id, status=session.status.value)


@router.get("/{ride_id}")
async def get_live_metrics(session: RideSession = Depends(get_ride)):
    """Current display values."""
    return session.live_metrics().to_dict()


@router.post("/{ride_id}/pause")
async def pause_ride(session: RideSession = Depends(get_ride)):
    try:
        await session.pause()
    except RideStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _status(session)


@router.post("/{ride_id}/resume")
async def resume_ride(session: RideSession = Depends(get_ride)):
    try:
        await session.resume()
    except RideStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _status(session)


@router.post("/{ride_id}/stop")
async def stop_ride(session: RideSession = Depends(get_ride)):
    """Stop the ride and return its summary (elevation-corrected if possible)."""
    try:
        result = await session.stop()
    except RideStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {
        **_status(session),
        "summary": result.summary.to_dict(),
        "entries": len(result.log),
    }


# === Inputs ===

@router.post("/{ride_id}/positions")
async def submit_position(
    position: PositionRequest,
    session: RideSession = Depends(get_ride),
):
    """
    Feed one position fix.

    Fixes are ignored while paused or stopped, and exact repeats within
    50 ms are dropped.
    """
    entry = await session.handle_event(PositionEvent(RealPosition(**position.model_dump())))
    return {
        "accepted": entry is not None,
        "entry": entry.to_dict() if entry else None,
    }


@router.post("/{ride_id}/position-errors")
async def submit_position_error(
    error: PositionErrorRequest,
    session: RideSession = Depends(get_ride),
):
    """Report a position source failure. The ride is stopped."""
    await session.handle_event(
        PositionErrorEvent(PositionSourceError(error.code, error.message))
    )
    response = _status(session)
    if session.status == RideStatus.IDLE and session.result is not None:
        response["summary"] = session.result.summary.to_dict()
    return response


@router.post("/{ride_id}/sensor/connect")
async def connect_sensor(session: RideSession = Depends(get_ride)):
    """Attach a push-mode speed/cadence sensor."""
    connected = await session.connect_sensor()
    return {"connected": connected}


@router.post("/{ride_id}/sensor/disconnect")
async def disconnect_sensor(session: RideSession = Depends(get_ride)):
    await session.disconnect_sensor()
    return {"connected": False}


@router.post("/{ride_id}/sensor/frames")
async def submit_sensor_frame(
    frame: SensorFrameRequest,
    session: RideSession = Depends(get_ride),
):
    """Feed one raw measurement frame; returns the decoded readings."""
    try:
        data = bytes.fromhex(frame.data)
    except ValueError:
        raise HTTPException(status_code=422, detail="Frame data is not valid hex")

    session.handle_sensor_frame(data)
    sensor = session.sensor
    return {
        "connected": bool(sensor and sensor.connected),
        "speed_kmh": sensor.speed_kmh if sensor else None,
        "cadence_rpm": sensor.cadence_rpm if sensor else None,
    }


# === Log & Export ===

def _ride_log(session: RideSession) -> list:
    if session.result is not None:
        return session.result.log
    return list(session.state.log)


@router.get("/{ride_id}/log")
async def get_ride_log(session: RideSession = Depends(get_ride)):
    """Logged entries; corrected entries once the ride is stopped."""
    return [entry.to_dict() for entry in _ride_log(session)]


@router.get("/{ride_id}/export.csv")
async def export_csv(session: RideSession = Depends(get_ride)):
    content = RideExportService.to_csv(_ride_log(session))
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition":
                f'attachment; filename="{RideExportService.filename("csv")}"'
        },
    )


@router.get("/{ride_id}/export.gpx")
async def export_gpx(session: RideSession = Depends(get_ride)):
    content = RideExportService.to_gpx(_ride_log(session), name="Ride")
    return Response(
        content=content,
        media_type="application/gpx+xml",
        headers={
            "Content-Disposition":
                f'attachment; filename="{RideExportService.filename("gpx")}"'
        },
    )
