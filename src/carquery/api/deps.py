"""FastAPI dependencies for dependency injection."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from carquery.database import get_session
from carquery.services.admin_auth import (
    AdminClaims,
    ForbiddenError,
    UnauthorizedError,
    decode_admin_token,
)
from carquery.services.rate_limit import (
    RATE_LIMIT_CONFIG,
    RateLimitType,
    check_rate_limit,
    rate_limit_headers,
)
from carquery.services.session_tokens import SessionTokenStore

logger = logging.getLogger(__name__)

# Type alias for database session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]

# auto_error=False so a missing header maps to our own 401
security = HTTPBearer(auto_error=False)


def get_token_store(request: Request) -> SessionTokenStore:
    """The session token store owned by the running application."""
    return request.app.state.session_tokens


TokenStoreDep = Annotated[SessionTokenStore, Depends(get_token_store)]


async def get_admin_claims(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> AdminClaims:
    """Verify the admin bearer token, raising 401 when absent and 403 when invalid."""
    try:
        claims = decode_admin_token(credentials.credentials if credentials else None)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except ForbiddenError as e:
        logger.debug(f"Admin token rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        ) from e

    request.state.admin_claims = claims
    return claims


AdminClaimsDep = Annotated[AdminClaims, Depends(get_admin_claims)]


class RateLimitDependency:
    """Dependency class for rate limiting endpoints.

    Usage:
        @router.post("/endpoint")
        async def endpoint(
            _rate_limit: Annotated[None, Depends(RateLimitDependency(RateLimitType.LOGIN))]
        ):
            ...
    """

    def __init__(self, limit_type: RateLimitType) -> None:
        self.limit_type = limit_type

    async def __call__(self, request: Request) -> None:
        """Check rate limit and raise 429 if exceeded."""
        result = await check_rate_limit(request, self.limit_type)

        if not result.success:
            logger.warning(f"Rate limit exceeded for {self.limit_type.value} endpoints")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=RATE_LIMIT_CONFIG[self.limit_type].message,
                headers=rate_limit_headers(result),
            )


# Pre-configured rate limit dependencies
SubmissionRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.SUBMISSION))]
SessionRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.SESSION))]
LoginRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.LOGIN))]
AdminRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.ADMIN))]
