"""Common schemas used across the API."""

from enum import Enum
from math import ceil
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

# Contact numbers: digits, spaces, "+", "-" and parentheses
PHONE_PATTERN = r"^[0-9+\-\s()]+$"

PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=255)]
PhoneNumber = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=10, max_length=32, pattern=PHONE_PATTERN),
]
Location = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=255)]
ShortText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class CamelModel(BaseModel):
    """Base schema that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PageMeta(CamelModel):
    """Pagination metadata for page-numbered listings."""

    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PageMeta":
        return cls(total=total, page=page, limit=limit, total_pages=ceil(total / limit))


class PaginatedResponse[T](CamelModel):
    """Paginated listing wrapper."""

    success: bool = True
    data: list[T]
    meta: PageMeta


class CngFilter(str, Enum):
    """CNG filter for the admin listings."""

    ALL = "all"
    CNG = "cng"
    REGULAR = "regular"


class ListingParams(BaseModel):
    """Query parameters shared by the admin listings."""

    page: int = Field(default=1, ge=1, description="1-based page number")
    limit: int = Field(default=20, ge=1, le=100, description="Items per page")
    search: str = Field(default="", max_length=255, description="Case-insensitive substring")
    filter: CngFilter = Field(default=CngFilter.ALL, description="CNG filter")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
