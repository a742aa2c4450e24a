"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-jwt-secret-that-is-long-enough-for-hs256"
os.environ["ADMIN_PASSWORD"] = "correct horse battery staple"
os.environ.pop("ADMIN_PASSWORD_HASH", None)

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from carquery.api.deps import get_token_store
from carquery.database import get_session
from carquery.main import app
from carquery.models import Registration, RideRequest
from carquery.services.admin_auth import create_admin_token, get_admin_password_hash
from carquery.services.rate_limit import get_rate_limiter
from carquery.services.session_tokens import SessionTokenStore
from tests.factories import make_registration, make_ride_request


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Every test starts with empty rate limit windows."""
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture(autouse=True)
def reset_admin_password_cache():
    """Settings patched by a test must not leak through the cached hash."""
    get_admin_password_hash.cache_clear()
    yield
    get_admin_password_hash.cache_clear()


@pytest.fixture
async def test_engine():
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def token_store() -> SessionTokenStore:
    """An empty session token store for the app under test."""
    return SessionTokenStore()


@pytest.fixture
async def client(
    session: AsyncSession, token_store: SessionTokenStore
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_token_store] = lambda: token_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_password() -> str:
    """The passphrase the test app is configured with."""
    return os.environ["ADMIN_PASSWORD"]


@pytest.fixture
def admin_token() -> str:
    """Create a valid admin JWT."""
    return create_admin_token()


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    """Create authorization headers for the admin."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def registration_payload() -> dict[str, Any]:
    """A valid registration form body."""
    return {
        "ownerName": "Asha Rao",
        "ownerContact": "+91 98765 43210",
        "carModel": "Maruti Swift",
        "regNumber": "KA01AB1234",
        "seats": 4,
        "cngPowered": True,
        "driverName": "Ravi Kumar",
        "driverContact": "+91 91234 56789",
    }


@pytest.fixture
def ride_request_payload() -> dict[str, Any]:
    """A valid ride request form body."""
    return {
        "passengerName": "Meera Iyer",
        "passengerContact": "(080) 2345-6789",
        "pickupLocation": "MG Road",
        "dropoffLocation": "Kempegowda Airport",
        "rideDate": "2026-10-20",
        "rideTime": "06:30",
        "passengers": 3,
        "prefersCNG": False,
        "specialRequests": "Two large suitcases",
    }


@pytest.fixture
async def registrations(session: AsyncSession) -> list[Registration]:
    """25 registrations, one minute apart, every third one CNG powered."""
    base = datetime.now(UTC) - timedelta(hours=1)
    items = [
        make_registration(
            created_at=base + timedelta(minutes=i),
            owner_name=f"Owner {i:02d}",
            car_model="Dzire" if i % 2 else "Swift",
            reg_number=f"KA01AA{i:04d}",
            owner_contact=f"98765{i:05d}",
            cng_powered=i % 3 == 0,
        )
        for i in range(25)
    ]
    session.add_all(items)
    await session.commit()
    return items


@pytest.fixture
async def ride_requests(session: AsyncSession) -> list[RideRequest]:
    """Four ride requests with two pickups in common."""
    base = datetime.now(UTC) - timedelta(hours=1)
    items = [
        make_ride_request(
            created_at=base, passenger_name="Anil", pickup_location="MG Road", passengers=1
        ),
        make_ride_request(
            created_at=base + timedelta(minutes=1),
            passenger_name="Bela",
            pickup_location="MG Road",
            passengers=2,
            prefers_cng=True,
        ),
        make_ride_request(
            created_at=base + timedelta(minutes=2),
            passenger_name="Chitra",
            pickup_location="Indiranagar",
            passengers=4,
        ),
        make_ride_request(
            created_at=base + timedelta(minutes=3),
            passenger_name="Dev",
            pickup_location="Whitefield",
            dropoff_location="MG Road Metro",
            passengers=1,
            prefers_cng=True,
        ),
    ]
    session.add_all(items)
    await session.commit()
    return items


# Helper to make authenticated requests
class AuthenticatedClient:
    """Wrapper for AsyncClient with authentication."""

    def __init__(self, client: AsyncClient, headers: dict[str, str]):
        self.client = client
        self.headers = headers

    async def get(self, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("headers", {}).update(self.headers)
        return await self.client.get(url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("headers", {}).update(self.headers)
        return await self.client.post(url, **kwargs)


@pytest.fixture
def admin_client(client: AsyncClient, admin_headers: dict[str, str]) -> AuthenticatedClient:
    """Create an authenticated admin test client."""
    return AuthenticatedClient(client, admin_headers)
