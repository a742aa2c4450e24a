"""SQLModel database models."""

from carquery.models.base import BaseModel, TimestampMixin
from carquery.models.registration import Registration
from carquery.models.ride_request import RideRequest

__all__ = [
    "BaseModel",
    "Registration",
    "RideRequest",
    "TimestampMixin",
]
