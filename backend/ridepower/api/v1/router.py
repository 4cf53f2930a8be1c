"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from ridepower.api.v1.routes import rides

api_router = APIRouter()

api_router.include_router(rides.router, prefix="/rides", tags=["Rides"])
