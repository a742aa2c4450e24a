"""Ride request storage: create and filtered listing."""

import logging

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from carquery.models import RideRequest
from carquery.models.ride_request import RideRequestCreate
from carquery.schemas import CngFilter, ListingParams

logger = logging.getLogger(__name__)


async def create_ride_request(session: AsyncSession, data: RideRequestCreate) -> RideRequest:
    """Persist a validated ride request."""
    ride_request = RideRequest(**data.model_dump())
    session.add(ride_request)
    await session.commit()
    await session.refresh(ride_request)
    logger.info(f"Ride request saved: {ride_request.id}")
    return ride_request


def _filtered(stmt, params: ListingParams):
    if params.search:
        needle = params.search.lower()
        stmt = stmt.where(
            or_(
                func.lower(RideRequest.passenger_name).contains(needle, autoescape=True),
                func.lower(RideRequest.pickup_location).contains(needle, autoescape=True),
                func.lower(RideRequest.dropoff_location).contains(needle, autoescape=True),
                RideRequest.passenger_contact.contains(params.search, autoescape=True),  # type: ignore[attr-defined]
            )
        )

    if params.filter is CngFilter.CNG:
        stmt = stmt.where(RideRequest.prefers_cng == True)  # noqa: E712
    elif params.filter is CngFilter.REGULAR:
        stmt = stmt.where(RideRequest.prefers_cng == False)  # noqa: E712

    return stmt


async def list_ride_requests(
    session: AsyncSession, params: ListingParams
) -> tuple[list[RideRequest], int]:
    """Return one page of ride requests (newest first) and the filtered total."""
    count_stmt = _filtered(select(func.count()).select_from(RideRequest), params)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        _filtered(select(RideRequest), params)
        .order_by(RideRequest.created_at.desc())  # type: ignore[attr-defined]
        .offset(params.offset)
        .limit(params.limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def all_ride_requests(session: AsyncSession) -> list[RideRequest]:
    """Every ride request, newest first."""
    stmt = select(RideRequest).order_by(RideRequest.created_at.desc())  # type: ignore[attr-defined]
    result = await session.execute(stmt)
    return list(result.scalars().all())
