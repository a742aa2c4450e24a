"""Results-page session token validation endpoints.

Registration and ride request results pages call their own endpoint, but
both consume tokens from the same store with the same single-use rules.
"""

import logging
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import Field

from carquery.api.deps import SessionRateLimit, TokenStoreDep
from carquery.schemas import CamelModel
from carquery.services.session_tokens import SessionTokenError, validate_session_token

logger = logging.getLogger(__name__)

router = APIRouter()


class ValidateSessionRequest(CamelModel):
    """Token taken from the results page URL."""

    # Left loose so a missing or non-string token gets a 400 from the handler
    token: Any = Field(default=None)


class ValidateSessionResponse(CamelModel):
    """Successful validation."""

    valid: bool = True
    subject_name: str


class SessionErrorResponse(CamelModel):
    """Failed validation."""

    valid: bool = False
    reason: str
    message: str


def _error(status_code: int, reason: str, message: str) -> JSONResponse:
    body = SessionErrorResponse(reason=reason, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def _validate(request: ValidateSessionRequest | None, store: TokenStoreDep, flow: str):
    if request is None or not request.token or not isinstance(request.token, str):
        return _error(status.HTTP_400_BAD_REQUEST, "missing_token", "Token is required")

    try:
        subject_name = validate_session_token(store, request.token)
    except SessionTokenError as e:
        logger.info(f"Rejected {flow} session token: {e.reason}")
        return _error(status.HTTP_401_UNAUTHORIZED, e.reason, str(e))

    return ValidateSessionResponse(subject_name=subject_name)


_responses = {
    400: {"model": SessionErrorResponse},
    401: {"model": SessionErrorResponse},
}


@router.post("/validate-session", response_model=ValidateSessionResponse, responses=_responses)
async def validate_session(
    store: TokenStoreDep,
    _rate_limit: SessionRateLimit,
    request: ValidateSessionRequest | None = None,
):
    """Consume the token that opens the registration results page."""
    return _validate(request, store, "registration")


@router.post("/validate-ride-session", response_model=ValidateSessionResponse, responses=_responses)
async def validate_ride_session(
    store: TokenStoreDep,
    _rate_limit: SessionRateLimit,
    request: ValidateSessionRequest | None = None,
):
    """Consume the token that opens the ride request results page."""
    return _validate(request, store, "ride request")
