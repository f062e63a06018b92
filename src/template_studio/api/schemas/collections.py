"""Pydantic schemas for collection endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CollectionResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    cover_image_url: str | None = None
    color: str
    icon: str | None = None
    order: int
    parent_collection_id: str | None = None
    is_active: bool
    is_featured: bool
    is_premium: bool
    is_curated: bool
    curated_by: str | None = None
    curated_at: datetime | None = None
    template_count: int = 0
    created_at: datetime
    updated_at: datetime
    templates: list[dict[str, Any]] | None = None


class CollectionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    cover_image_url: str | None = None
    color: str = Field("#000000", pattern=r"^#[0-9a-fA-F]{6}$")
    icon: str | None = None
    order: int = 0
    parent_collection_id: str | None = None
    is_active: bool = True
    is_featured: bool = False
    is_premium: bool = False
    is_curated: bool = False


class CollectionUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    cover_image_url: str | None = None
    color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    icon: str | None = None
    order: int | None = None
    parent_collection_id: str | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    is_premium: bool | None = None
    is_curated: bool | None = None


class CollectionTemplatesRequest(BaseModel):
    template_ids: list[str] = Field(..., min_length=1)
    start_order: int = Field(0, ge=0)
    added_reason: str | None = None
