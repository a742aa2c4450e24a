"""Admin authentication: passphrase check and JWT management."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from carquery.config import settings

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class AdminAuthError(Exception):
    """Admin authentication error."""

    pass


class UnauthorizedError(AdminAuthError):
    """No admin credential was presented."""

    pass


class ForbiddenError(AdminAuthError):
    """The presented admin credential is invalid, expired, or not an admin one."""

    pass


@dataclass(frozen=True)
class AdminClaims:
    """Decoded admin token claims."""

    role: str
    issued_at: datetime
    expires_at: datetime


def admin_token_lifetime() -> timedelta:
    return timedelta(hours=settings.admin_token_expiration_hours)


def hash_password(password: str) -> str:
    """Hash a passphrase for ADMIN_PASSWORD_HASH."""
    return generate_password_hash(password)


@lru_cache
def get_admin_password_hash() -> str | None:
    """Resolve the configured admin passphrase hash.

    A plain ADMIN_PASSWORD is hashed once and cached for the process lifetime.
    """
    if settings.admin_password_hash:
        return settings.admin_password_hash
    if settings.admin_password:
        return hash_password(settings.admin_password)
    logger.warning("No admin password configured; admin login is disabled")
    return None


def verify_admin_password(password: str) -> bool:
    """Check a passphrase against the configured salted hash."""
    password_hash = get_admin_password_hash()
    if not password_hash or not password:
        return False
    return check_password_hash(password_hash, password)


def create_admin_token(issued_at: datetime | None = None) -> str:
    """Create a signed admin JWT."""
    issued_at = issued_at or datetime.now(UTC)
    payload = {
        "role": ADMIN_ROLE,
        "iat": issued_at,
        "exp": issued_at + admin_token_lifetime(),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_admin_token(token: str | None) -> AdminClaims:
    """Decode and validate an admin JWT.

    Raises:
        UnauthorizedError: no token given
        ForbiddenError: bad signature, expired, malformed, or wrong role
    """
    if not token:
        raise UnauthorizedError("Admin access token required")

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise ForbiddenError(f"Invalid token: {e}") from e

    if payload.get("role") != ADMIN_ROLE:
        raise ForbiddenError("Invalid token: admin role required")

    try:
        return AdminClaims(
            role=payload["role"],
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ForbiddenError("Invalid token: malformed claims") from e
