"""Pydantic schemas for API requests/responses."""

from carquery.schemas.common import (
    CamelModel,
    CngFilter,
    ListingParams,
    PageMeta,
    PaginatedResponse,
)

__all__ = [
    "CamelModel",
    "CngFilter",
    "ListingParams",
    "PageMeta",
    "PaginatedResponse",
]
