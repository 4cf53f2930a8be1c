"""
RidePower API

FastAPI application for live cycling power estimation.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ridepower.config import settings
from ridepower.api.v1.router import api_router
from ridepower.features.ride import RideStatus


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("Starting RidePower API...")
    app.state.rides = {}

    yield

    # Shutdown: rides still running are stopped so sensors and locks are released
    for ride_id, session in app.state.rides.items():
        if session.status != RideStatus.IDLE:
            logger.info(f"Stopping ride {ride_id} on shutdown")
            try:
                await session.stop()
            except Exception as e:
                logger.error(f"Failed to stop ride {ride_id}: {e}")
    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="RidePower API",
    description="Live cycling power estimation with sensor fusion and elevation correction",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
