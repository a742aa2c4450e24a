"""Ride request model."""

from datetime import datetime

from pydantic import Field as PydanticField
from sqlmodel import Field

from carquery.models.base import BaseModel
from carquery.schemas.common import CamelModel, Location, PersonName, PhoneNumber, ShortText


class RideRequest(BaseModel, table=True):
    """A passenger's request for a ride."""

    __tablename__ = "ride_requests"

    passenger_name: str = Field(max_length=255, index=True)
    passenger_contact: str = Field(max_length=32)
    pickup_location: str = Field(max_length=255)
    dropoff_location: str = Field(max_length=255)
    ride_date: str = Field(max_length=32)
    ride_time: str = Field(max_length=32)
    passengers: int
    prefers_cng: bool = Field(default=False, index=True)
    special_requests: str | None = Field(default=None, max_length=2000)


class RideRequestCreate(CamelModel):
    """Ride request form payload."""

    passenger_name: PersonName
    passenger_contact: PhoneNumber
    pickup_location: Location
    dropoff_location: Location
    ride_date: ShortText
    ride_time: ShortText
    passengers: int = PydanticField(ge=1, le=8)
    prefers_cng: bool = PydanticField(alias="prefersCNG")
    special_requests: str | None = PydanticField(default=None, max_length=2000)


class RideRequestRead(CamelModel):
    """Ride request as returned by the API."""

    id: str
    passenger_name: str
    passenger_contact: str
    pickup_location: str
    dropoff_location: str
    ride_date: str
    ride_time: str
    passengers: int
    prefers_cng: bool = PydanticField(alias="prefersCNG")
    special_requests: str | None
    created_at: datetime
