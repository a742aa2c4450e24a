"""Per-client sliding window rate limiting."""

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum

from fastapi import Request

from carquery.config import settings

# All limits share a 15 minute window
WINDOW_SECONDS = 15 * 60


class RateLimitType(str, Enum):
    """Endpoint groups that are limited independently."""

    SUBMISSION = "submission"
    SESSION = "session"
    LOGIN = "login"
    ADMIN = "admin"


@dataclass
class RateLimitConfig:
    """Allowed requests per window for one endpoint group."""

    requests: int
    window_seconds: int
    message: str


RATE_LIMIT_CONFIG: dict[RateLimitType, RateLimitConfig] = {
    RateLimitType.SUBMISSION: RateLimitConfig(
        requests=50,
        window_seconds=WINDOW_SECONDS,
        message="Too many registration attempts. Please try again later.",
    ),
    RateLimitType.SESSION: RateLimitConfig(
        requests=50,
        window_seconds=WINDOW_SECONDS,
        message="Too many session checks. Please try again later.",
    ),
    RateLimitType.LOGIN: RateLimitConfig(
        requests=20,
        window_seconds=WINDOW_SECONDS,
        message="Too many login attempts. Please try again later.",
    ),
    RateLimitType.ADMIN: RateLimitConfig(
        requests=50,
        window_seconds=WINDOW_SECONDS,
        message="Too many admin requests. Please try again later.",
    ),
}


@dataclass
class RateLimitResult:
    """Outcome of a single rate limit check."""

    success: bool
    limit: int
    remaining: int
    reset: int  # Unix timestamp in seconds


class InMemoryRateLimiter:
    """Sliding window limiter keyed by "<type>:<client>".

    Counts live in this process only; a multi-instance deployment needs a
    shared backend instead.
    """

    def __init__(self) -> None:
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def check(self, identifier: str, limit_type: RateLimitType) -> RateLimitResult:
        """Record a request for identifier and report whether it is allowed."""
        config = RATE_LIMIT_CONFIG[limit_type]
        key = f"{limit_type.value}:{identifier}"
        now = time.time()
        window_start = now - config.window_seconds

        async with self._lock:
            timestamps = [t for t in self._requests[key] if t > window_start]

            if len(timestamps) >= config.requests:
                self._requests[key] = timestamps
                return RateLimitResult(
                    success=False,
                    limit=config.requests,
                    remaining=0,
                    reset=int(min(timestamps) + config.window_seconds),
                )

            timestamps.append(now)
            self._requests[key] = timestamps
            return RateLimitResult(
                success=True,
                limit=config.requests,
                remaining=config.requests - len(timestamps),
                reset=int(now + config.window_seconds),
            )

    def reset(self) -> None:
        """Forget every recorded request."""
        self._requests.clear()

    def __len__(self) -> int:
        return len(self._requests)

    async def cleanup_old_entries(self, now: float | None = None) -> int:
        """Drop keys with no requests left inside their window.

        Returns:
            Number of keys removed
        """
        now = now or time.time()
        removed = 0

        async with self._lock:
            for key in list(self._requests):
                limit_type = RateLimitType(key.split(":", 1)[0])
                window_start = now - RATE_LIMIT_CONFIG[limit_type].window_seconds
                timestamps = [t for t in self._requests[key] if t > window_start]
                if timestamps:
                    self._requests[key] = timestamps
                else:
                    del self._requests[key]
                    removed += 1

        return removed


_rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> InMemoryRateLimiter:
    """Get the process-wide rate limiter."""
    return _rate_limiter


def get_client_ip(request: Request) -> str | None:
    """Client IP for rate limiting.

    Proxy headers are client-controlled, so they are only read when
    TRUST_PROXY_HEADERS says a proxy in front of the app sets them.
    """
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

    if request.client:
        return request.client.host

    return None


async def check_rate_limit(request: Request, limit_type: RateLimitType) -> RateLimitResult:
    """Check the limit for the client behind request."""
    identifier = f"ip:{get_client_ip(request) or 'unknown'}"
    return await get_rate_limiter().check(identifier, limit_type)


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Standard RateLimit-* headers for a check result."""
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset),
    }

    if not result.success:
        headers["Retry-After"] = str(max(0, result.reset - int(time.time())))

    return headers
