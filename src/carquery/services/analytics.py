"""Admin dashboard rollups for registrations and ride requests."""

from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import distinct, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from carquery.models import Registration, RideRequest
from carquery.schemas import CamelModel

# Days shown in the registrations-per-day chart, today included
CHART_DAYS = 7

# Entries in the top-N charts
TOP_N = 5


class DailyCount(CamelModel):
    date: str
    count: int


class CarModelCount(CamelModel):
    model: str
    count: int


class LocationCount(CamelModel):
    location: str
    count: int


class RegistrationAnalytics(CamelModel):
    total_registrations: int
    cng_powered: int
    regular_powered: int
    unique_cars: int
    registrations_by_date: list[DailyCount]
    car_model_chart: list[CarModelCount]
    this_week_count: int


class RideAnalytics(CamelModel):
    total_ride_requests: int
    cng_preferred: int
    avg_passengers: float
    popular_pickups: list[LocationCount]


def chart_label(day: date) -> str:
    """Short chart label, e.g. "Oct 5"."""
    return f"{day:%b} {day.day}"


def _as_utc_date(value: datetime) -> date:
    # SQLite hands back naive datetimes that were stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).date()


async def registration_analytics(
    session: AsyncSession, today: date | None = None
) -> RegistrationAnalytics:
    """Totals, CNG split, daily counts for the last week and top car models."""
    today = today or datetime.now(UTC).date()

    total = (await session.execute(select(func.count()).select_from(Registration))).scalar() or 0
    cng = (
        await session.execute(
            select(func.count())
            .select_from(Registration)
            .where(Registration.cng_powered == True)  # noqa: E712
        )
    ).scalar() or 0

    model_key = func.lower(Registration.car_model)
    unique_cars = (await session.execute(select(func.count(distinct(model_key))))).scalar() or 0

    days = [today - timedelta(days=offset) for offset in range(CHART_DAYS - 1, -1, -1)]
    window_start = datetime.combine(days[0], time.min, tzinfo=UTC)
    recent = await session.execute(
        select(Registration.created_at).where(Registration.created_at >= window_start)
    )
    per_day = dict.fromkeys(days, 0)
    for (created_at,) in recent:
        day = _as_utc_date(created_at)
        if day in per_day:
            per_day[day] += 1
    by_date = [DailyCount(date=chart_label(day), count=count) for day, count in per_day.items()]

    model_count = func.count().label("count")
    top_models = await session.execute(
        select(model_key.label("model"), model_count)
        .group_by(model_key)
        .order_by(model_count.desc(), model_key)
        .limit(TOP_N)
    )
    car_model_chart = [
        CarModelCount(model=model[:1].upper() + model[1:], count=count)
        for model, count in top_models
    ]

    return RegistrationAnalytics(
        total_registrations=total,
        cng_powered=cng,
        regular_powered=total - cng,
        unique_cars=unique_cars,
        registrations_by_date=by_date,
        car_model_chart=car_model_chart,
        this_week_count=sum(per_day.values()),
    )


async def ride_analytics(session: AsyncSession) -> RideAnalytics:
    """Totals, CNG preference, mean party size and most common pickups."""
    total = (await session.execute(select(func.count()).select_from(RideRequest))).scalar() or 0
    cng = (
        await session.execute(
            select(func.count())
            .select_from(RideRequest)
            .where(RideRequest.prefers_cng == True)  # noqa: E712
        )
    ).scalar() or 0
    avg = (await session.execute(select(func.avg(RideRequest.passengers)))).scalar()

    pickup_count = func.count().label("count")
    pickups = await session.execute(
        select(RideRequest.pickup_location, pickup_count)
        .group_by(RideRequest.pickup_location)
        .order_by(pickup_count.desc(), RideRequest.pickup_location)
        .limit(TOP_N)
    )

    return RideAnalytics(
        total_ride_requests=total,
        cng_preferred=cng,
        avg_passengers=round(float(avg), 1) if avg is not None else 0.0,
        popular_pickups=[
            LocationCount(location=location, count=count) for location, count in pickups
        ],
    )
