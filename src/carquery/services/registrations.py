"""Registration storage: create and filtered listing."""

import logging

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from carquery.models import Registration
from carquery.models.registration import RegistrationCreate
from carquery.schemas import CngFilter, ListingParams

logger = logging.getLogger(__name__)


async def create_registration(session: AsyncSession, data: RegistrationCreate) -> Registration:
    """Persist a validated registration."""
    registration = Registration(**data.model_dump())
    session.add(registration)
    await session.commit()
    await session.refresh(registration)
    logger.info(f"Registration saved: {registration.id}")
    return registration


def _filtered(stmt, params: ListingParams):
    if params.search:
        needle = params.search.lower()
        stmt = stmt.where(
            or_(
                func.lower(Registration.owner_name).contains(needle, autoescape=True),
                func.lower(Registration.car_model).contains(needle, autoescape=True),
                func.lower(Registration.reg_number).contains(needle, autoescape=True),
                func.lower(Registration.driver_name).contains(needle, autoescape=True),
                Registration.owner_contact.contains(params.search, autoescape=True),  # type: ignore[attr-defined]
                Registration.driver_contact.contains(params.search, autoescape=True),  # type: ignore[attr-defined]
            )
        )

    if params.filter is CngFilter.CNG:
        stmt = stmt.where(Registration.cng_powered == True)  # noqa: E712
    elif params.filter is CngFilter.REGULAR:
        stmt = stmt.where(Registration.cng_powered == False)  # noqa: E712

    return stmt


async def list_registrations(
    session: AsyncSession, params: ListingParams
) -> tuple[list[Registration], int]:
    """Return one page of registrations (newest first) and the filtered total."""
    count_stmt = _filtered(select(func.count()).select_from(Registration), params)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        _filtered(select(Registration), params)
        .order_by(Registration.created_at.desc())  # type: ignore[attr-defined]
        .offset(params.offset)
        .limit(params.limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def all_registrations(session: AsyncSession) -> list[Registration]:
    """Every registration, newest first."""
    stmt = select(Registration).order_by(Registration.created_at.desc())  # type: ignore[attr-defined]
    result = await session.execute(stmt)
    return list(result.scalars().all())
