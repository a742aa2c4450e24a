"""CSV rendering of stored records for admin download."""

import csv
import io
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from carquery.models import Registration, RideRequest
from carquery.services.registrations import all_registrations
from carquery.services.ride_requests import all_ride_requests

REGISTRATION_HEADERS = [
    "ID",
    "Owner Name",
    "Owner Contact",
    "Car Model",
    "Registration Number",
    "Number of Seats",
    "CNG Powered",
    "Driver Name",
    "Driver Contact",
    "Created At",
]

RIDE_REQUEST_HEADERS = [
    "ID",
    "Passenger Name",
    "Passenger Contact",
    "Pickup Location",
    "Dropoff Location",
    "Ride Date",
    "Ride Time",
    "Passengers",
    "Prefers CNG",
    "Special Requests",
    "Created At",
]


class ExportType(str, Enum):
    """Record sets available for download."""

    REGISTRATIONS = "registrations"
    RIDE_REQUESTS = "ride-requests"

    @property
    def filename(self) -> str:
        return f"{self.value}.csv"


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def registrations_to_csv(registrations: Iterable[Registration]) -> str:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(REGISTRATION_HEADERS)
    for r in registrations:
        w.writerow(
            [
                r.id,
                r.owner_name,
                r.owner_contact,
                r.car_model,
                r.reg_number,
                r.seats,
                _yes_no(r.cng_powered),
                r.driver_name,
                r.driver_contact,
                _timestamp(r.created_at),
            ]
        )
    return out.getvalue()


def ride_requests_to_csv(ride_requests: Iterable[RideRequest]) -> str:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(RIDE_REQUEST_HEADERS)
    for r in ride_requests:
        w.writerow(
            [
                r.id,
                r.passenger_name,
                r.passenger_contact,
                r.pickup_location,
                r.dropoff_location,
                r.ride_date,
                r.ride_time,
                r.passengers,
                _yes_no(r.prefers_cng),
                r.special_requests or "",
                _timestamp(r.created_at),
            ]
        )
    return out.getvalue()


async def export_csv(session: AsyncSession, export_type: ExportType) -> str:
    """Render every stored record of export_type, newest first."""
    if export_type is ExportType.RIDE_REQUESTS:
        return ride_requests_to_csv(await all_ride_requests(session))
    return registrations_to_csv(await all_registrations(session))
