"""Car rental registration model."""

from datetime import datetime

from pydantic import Field as PydanticField
from sqlmodel import Field

from carquery.models.base import BaseModel
from carquery.schemas.common import CamelModel, PersonName, PhoneNumber, ShortText


class Registration(BaseModel, table=True):
    """A vehicle offered for rent, with its owner and driver."""

    __tablename__ = "registrations"

    owner_name: str = Field(max_length=255, index=True)
    owner_contact: str = Field(max_length=32)
    car_model: str = Field(max_length=255)
    reg_number: str = Field(max_length=255)
    seats: int
    cng_powered: bool = Field(default=False, index=True)
    driver_name: str = Field(max_length=255)
    driver_contact: str = Field(max_length=32)


class RegistrationCreate(CamelModel):
    """Registration form payload."""

    owner_name: PersonName
    owner_contact: PhoneNumber
    car_model: ShortText
    reg_number: ShortText
    seats: int = PydanticField(ge=1, le=20)
    cng_powered: bool
    driver_name: PersonName
    driver_contact: PhoneNumber


class RegistrationRead(CamelModel):
    """Registration as returned by the API."""

    id: str
    owner_name: str
    owner_contact: str
    car_model: str
    reg_number: str
    seats: int
    cng_powered: bool
    driver_name: str
    driver_contact: str
    created_at: datetime
