"""Admin login, analytics and export endpoints."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from pydantic import BaseModel

from carquery.api.deps import AdminClaimsDep, AdminRateLimit, LoginRateLimit, SessionDep
from carquery.schemas import CamelModel
from carquery.services.admin_auth import (
    admin_token_lifetime,
    create_admin_token,
    verify_admin_password,
)
from carquery.services.analytics import (
    RegistrationAnalytics,
    RideAnalytics,
    registration_analytics,
    ride_analytics,
)
from carquery.services.csv_export import ExportType, export_csv

logger = logging.getLogger(__name__)

# Mounted under /admin
router = APIRouter()

# Mounted at the API root, paths kept from the admin panel's client
data_router = APIRouter()


class LoginRequest(BaseModel):
    """Request body for admin login."""

    password: str


class LoginResponse(CamelModel):
    """Response containing the admin bearer token."""

    success: bool = True
    message: str = "Login successful"
    token: str
    expires_in: int


class AdminSessionRead(CamelModel):
    """Claims of the presented admin token."""

    role: str
    issued_at: datetime
    expires_at: datetime


class AnalyticsResponse[T](CamelModel):
    success: bool = True
    data: T


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, _rate_limit: LoginRateLimit):
    """Exchange the admin passphrase for a bearer token."""
    # Slow hash; keep it off the event loop
    if not await run_in_threadpool(verify_admin_password, request.password):
        logger.warning("Admin login failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid password",
        )

    logger.info("Admin login succeeded")
    return LoginResponse(
        token=create_admin_token(),
        expires_in=int(admin_token_lifetime().total_seconds()),
    )


@router.get("/me", response_model=AdminSessionRead)
async def get_admin_session(claims: AdminClaimsDep):
    """Describe the admin token in use, e.g. to show time left in the panel."""
    return AdminSessionRead(
        role=claims.role,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )


@data_router.get("/analytics", response_model=AnalyticsResponse[RegistrationAnalytics])
async def get_registration_analytics(
    session: SessionDep,
    _rate_limit: AdminRateLimit,
    _admin: AdminClaimsDep,
):
    """Registration dashboard figures (admin only)."""
    data = await registration_analytics(session)
    return AnalyticsResponse[RegistrationAnalytics](data=data)


@data_router.get("/ride-analytics", response_model=AnalyticsResponse[RideAnalytics])
async def get_ride_analytics(
    session: SessionDep,
    _rate_limit: AdminRateLimit,
    _admin: AdminClaimsDep,
):
    """Ride request dashboard figures (admin only)."""
    data = await ride_analytics(session)
    return AnalyticsResponse[RideAnalytics](data=data)


@data_router.get("/download-csv")
async def download_csv(
    session: SessionDep,
    _rate_limit: AdminRateLimit,
    _admin: AdminClaimsDep,
    export_type: Annotated[ExportType, Query(alias="type")] = ExportType.REGISTRATIONS,
):
    """Download registrations or ride requests as CSV (admin only)."""
    content = await export_csv(session, export_type)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_type.filename}"},
    )
