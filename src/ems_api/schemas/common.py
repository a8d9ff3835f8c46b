"""Common Pydantic v2 schemas shared across the API.

Provides the response envelope, pagination, and error response schemas.
"""

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every successful response."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class PaginationParams(BaseModel):
    """Query parameters for paginated endpoints."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")


class PaginationMeta(BaseModel):
    """Pagination metadata included in paginated responses."""

    total: int = Field(description="Total number of items")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Items per page")
    total_pages: int = Field(description="Total number of pages")


class Page(BaseModel, Generic[T]):
    """A page of items with pagination metadata."""

    items: list[T]
    pagination: PaginationMeta


class ErrorResponse(BaseModel):
    """Standard error response body."""

    success: bool = False
    message: str = Field(description="Human-readable error message")
    reason: str | None = Field(default=None, description="Machine-readable failure reason")
    errors: list[dict] | None = Field(default=None, description="Detailed validation errors")


AUTH_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    401: {"model": ErrorResponse, "description": "Missing, invalid, expired or superseded token"},
    403: {"model": ErrorResponse, "description": "Account deactivated or access not allowed"},
}


def build_page(items: list[T], total: int, pagination: PaginationParams) -> Page[T]:
    """Wrap one page of already-serialized items with its pagination metadata."""
    return Page(
        items=items,
        pagination=PaginationMeta(
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=max(1, math.ceil(total / pagination.page_size)),
        ),
    )
