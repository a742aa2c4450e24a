"""Main API router that aggregates all route modules."""

from fastapi import APIRouter

from carquery.api import admin, health, registrations, ride_requests, sessions

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])

# Public intake; GET on the same paths is the admin listing
api_router.include_router(registrations.router, prefix="/registrations", tags=["registrations"])
api_router.include_router(ride_requests.router, prefix="/ride-requests", tags=["ride-requests"])

# Results page token checks
api_router.include_router(sessions.router, tags=["sessions"])

# Admin endpoints
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(admin.data_router, tags=["admin"])
