"""Registration submission and admin listing endpoints."""

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
from carquery.models.registration import RegistrationCreate, RegistrationRead
from carquery.schemas import CamelModel, ListingParams, PageMeta, PaginatedResponse
from carquery.services.registrations import create_registration, list_registrations
from carquery.services.session_tokens import StoreFaultError, issue_session_token

logger = logging.getLogger(__name__)

router = APIRouter()

RESULTS_PATH = "/results"


class RegistrationSubmitted(CamelModel):
    """Response for a stored registration."""

    success: bool = True
    message: str
    session_token: str
    results_url: str
    data: RegistrationRead


@router.post("", response_model=RegistrationSubmitted)
async def submit_registration(
    registration_in: RegistrationCreate,
    session: SessionDep,
    store: TokenStoreDep,
    _rate_limit: SubmissionRateLimit,
):
    """Store a car rental registration and issue a results-page token."""
    registration = await create_registration(session, registration_in)

    try:
        token = issue_session_token(store, registration.owner_name)
    except StoreFaultError as e:
        logger.exception(f"Could not issue session token for registration {registration.id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit registration",
        ) from e

    return RegistrationSubmitted(
        message="Registration submitted successfully!",
        session_token=token,
        results_url=f"{RESULTS_PATH}?token={token}",
        data=RegistrationRead.model_validate(registration),
    )


@router.get("", response_model=PaginatedResponse[RegistrationRead])
async def get_registrations(
    params: Annotated[ListingParams, Query()],
    session: SessionDep,
    _rate_limit: AdminRateLimit,
    _admin: AdminClaimsDep,
):
    """List registrations (admin only).

    Query parameters:
        page: 1-based page number (default 1)
        limit: Page size (default 20, max 100)
        search: Matches names, car model, registration number and contacts
        filter: all, cng or regular
    """
    registrations, total = await list_registrations(session, params)
    return PaginatedResponse[RegistrationRead](
        data=[RegistrationRead.model_validate(r) for r in registrations],
        meta=PageMeta.build(total=total, page=params.page, limit=params.limit),
    )
