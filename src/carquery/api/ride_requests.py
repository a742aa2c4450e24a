"""Ride request submission and admin listing endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from carquery.api.deps import (
    AdminClaimsDep,
    AdminRateLimit,
    SessionDep,
    SubmissionRateLimit,
    TokenStoreDep,
)
from carquery.models.ride_request import RideRequestCreate, RideRequestRead
from carquery.schemas import CamelModel, ListingParams, PageMeta, PaginatedResponse
from carquery.services.ride_requests import create_ride_request, list_ride_requests
from carquery.services.session_tokens import StoreFaultError, issue_session_token

logger = logging.getLogger(__name__)

router = APIRouter()

RESULTS_PATH = "/ride-results"


class RideRequestSubmitted(CamelModel):
    """Response for a stored ride request."""

    success: bool = True
    message: str
    session_token: str
    results_url: str
    data: RideRequestRead


@router.post("", response_model=RideRequestSubmitted)
async def submit_ride_request(
    ride_request_in: RideRequestCreate,
    session: SessionDep,
    store: TokenStoreDep,
    _rate_limit: SubmissionRateLimit,
):
    """Store a ride request and issue a results-page token."""
    ride_request = await create_ride_request(session, ride_request_in)

    try:
        token = issue_session_token(store, ride_request.passenger_name)
    except StoreFaultError as e:
        logger.exception(f"Could not issue session token for ride request {ride_request.id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit ride request",
        ) from e

    return RideRequestSubmitted(
        message="Ride request submitted successfully!",
        session_token=token,
        results_url=f"{RESULTS_PATH}?token={token}",
        data=RideRequestRead.model_validate(ride_request),
    )


@router.get("", response_model=PaginatedResponse[RideRequestRead])
async def get_ride_requests(
    params: Annotated[ListingParams, Query()],
    session: SessionDep,
    _rate_limit: AdminRateLimit,
    _admin: AdminClaimsDep,
):
    """List ride requests (admin only).

    Same query parameters as the registration listing; filter applies to the
    passenger's CNG preference.
    """
    ride_requests, total = await list_ride_requests(session, params)
    return PaginatedResponse[RideRequestRead](
        data=[RideRequestRead.model_validate(r) for r in ride_requests],
        meta=PageMeta.build(total=total, page=params.page, limit=params.limit),
    )
