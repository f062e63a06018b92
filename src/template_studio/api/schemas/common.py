"""Shared Pydantic schemas for API responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from template_studio.constants import DEFAULT_LIMIT, MAX_LIMIT

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "BulkCountResult",
    "BulkResult",
    "PaginationMeta",
]


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""

    total: int = Field(description="Total number of items available")
    limit: int = Field(description="Maximum number of items returned")
    offset: int = Field(description="Number of items skipped")
    has_more: bool = Field(description="Whether there are more items available")


class BulkResult(BaseModel):
    """Outcome of a bulk operation processed one item at a time."""

    success: bool = Field(description="Whether every item succeeded")
    success_count: int = Field(description="Number of items processed successfully")
    errors: list[str] = Field(default_factory=list, description="One message per failed item")


class BulkCountResult(BaseModel):
    """Outcome of a bulk operation executed as a single statement."""

    success: bool
    updated: int = Field(description="Number of rows changed")
