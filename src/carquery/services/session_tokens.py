"""One-time session tokens that gate the post-submission results pages.

A token is minted when a registration or ride request is stored and
authorizes exactly one successful validation, after which the results page
renders the submitter's name. Tokens live only in process memory.
"""

import asyncio
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from carquery.config import settings
from carquery.services.rate_limit import InMemoryRateLimiter

logger = logging.getLogger(__name__)

# 32 random bytes, hex encoded: 64 characters, 256 bits
TOKEN_BYTES = 32

# Anything shorter cannot have come from the issuer
MIN_TOKEN_LENGTH = 32

DEFAULT_TTL = timedelta(minutes=settings.session_token_ttl_minutes)
DEFAULT_SWEEP_INTERVAL = timedelta(minutes=settings.session_token_sweep_minutes)


class SessionTokenError(Exception):
    """Base class for session token validation failures."""

    reason = "invalid_token"


class InvalidTokenError(SessionTokenError):
    """Token is missing, malformed, or unknown."""

    reason = "invalid_token"


class ExpiredTokenError(SessionTokenError):
    """Token is older than the results-page TTL."""

    reason = "expired_token"


class TokenAlreadyConsumedError(SessionTokenError):
    """Token was already used to open the results page."""

    reason = "already_consumed"


class StoreFaultError(Exception):
    """The token store could not record a new token."""


@dataclass
class SessionToken:
    """A stored token and the submission it belongs to."""

    token: str
    subject_name: str
    issued_at: datetime
    consumed: bool = False

    def age(self, now: datetime) -> timedelta:
        return now - self.issued_at


class SessionTokenStore:
    """Thread-safe in-memory map of token -> SessionToken.

    Every method holds the lock for a single dictionary operation, or for the
    check-then-mutate of one key in consume(), never for a full scan.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, SessionToken] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._tokens

    def put(self, token: str, subject_name: str, now: datetime | None = None) -> SessionToken:
        entry = SessionToken(
            token=token,
            subject_name=subject_name,
            issued_at=now or datetime.now(UTC),
        )
        with self._lock:
            self._tokens[token] = entry
        return entry

    def get(self, token: str) -> SessionToken | None:
        with self._lock:
            return self._tokens.get(token)

    def mark_consumed(self, token: str) -> None:
        with self._lock:
            entry = self._tokens.get(token)
            if entry is not None:
                entry.consumed = True

    def delete(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def consume(self, token: str, ttl: timedelta, now: datetime | None = None) -> str:
        """Atomically check a token and mark it consumed.

        Expired and already-consumed entries are removed before raising.

        Returns:
            The subject name bound to the token

        Raises:
            InvalidTokenError: token is not in the store
            ExpiredTokenError: token is older than ttl
            TokenAlreadyConsumedError: token was consumed before
        """
        now = now or datetime.now(UTC)
        with self._lock:
            entry = self._tokens.get(token)
            if entry is None:
                raise InvalidTokenError("Invalid or expired token")
            if entry.age(now) > ttl:
                del self._tokens[token]
                raise ExpiredTokenError("Token has expired")
            if entry.consumed:
                del self._tokens[token]
                raise TokenAlreadyConsumedError("Token already used")
            entry.consumed = True
            return entry.subject_name

    def sweep(self, now: datetime | None = None, max_age: timedelta = DEFAULT_SWEEP_INTERVAL) -> int:
        """Remove consumed entries and entries older than max_age.

        Returns:
            Number of entries removed
        """
        now = now or datetime.now(UTC)
        with self._lock:
            snapshot = list(self._tokens.items())

        removed = 0
        for token, entry in snapshot:
            if not entry.consumed and entry.age(now) <= max_age:
                continue
            with self._lock:
                # Skip entries replaced since the snapshot was taken
                if self._tokens.get(token) is entry:
                    del self._tokens[token]
                    removed += 1
        return removed


def issue_session_token(store: SessionTokenStore, subject_name: str) -> str:
    """Mint a token for a freshly stored submission.

    Args:
        store: Token store shared by the request handlers
        subject_name: Owner or passenger name shown on the results page

    Returns:
        The token, to be embedded in the results URL
    """
    if not subject_name:
        raise ValueError("subject_name must not be empty")

    token = secrets.token_hex(TOKEN_BYTES)
    try:
        store.put(token, subject_name)
    except MemoryError as e:
        raise StoreFaultError("Unable to store session token") from e
    return token


def validate_session_token(
    store: SessionTokenStore,
    token: object,
    now: datetime | None = None,
    ttl: timedelta = DEFAULT_TTL,
) -> str:
    """Validate and consume a results-page token.

    Malformed tokens are rejected before the store is consulted.

    Returns:
        The subject name bound to the token
    """
    if not isinstance(token, str) or len(token) < MIN_TOKEN_LENGTH:
        raise InvalidTokenError("Invalid or expired token")
    return store.consume(token, ttl=ttl, now=now)


async def run_token_sweeper(
    store: SessionTokenStore,
    interval: timedelta = DEFAULT_SWEEP_INTERVAL,
    max_age: timedelta = DEFAULT_SWEEP_INTERVAL,
    rate_limiter: InMemoryRateLimiter | None = None,
) -> None:
    """Sweep the store on a fixed interval until cancelled.

    When a rate limiter is given, its idle client keys are dropped on the same
    schedule. Errors from a single sweep are logged and the loop keeps running.
    """
    seconds = interval.total_seconds()
    logger.info(f"Session token sweeper started (every {seconds:.0f}s)")
    while True:
        await asyncio.sleep(seconds)
        try:
            removed = store.sweep(max_age=max_age)
            pruned = await rate_limiter.cleanup_old_entries() if rate_limiter else 0
        except Exception:
            logger.exception("Session token sweep failed")
            continue
        if removed:
            logger.info(f"Swept {removed} stale session tokens")
        if pruned:
            logger.debug(f"Dropped {pruned} idle rate limit keys")
