"""Pydantic schemas for tag endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class TagResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    color: str
    category: str | None = None
    is_system_tag: bool
    usage_count: int
    parent_tag_id: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class TagCreateRequest(BaseModel):
    """Request schema for creating a tag; the slug defaults to one derived from the name."""

    name: str = Field(..., min_length=1, max_length=128)
    slug: str | None = Field(None, max_length=128)
    description: str | None = None
    color: str = Field("#000000", pattern=r"^#[0-9a-fA-F]{6}$")
    category: str | None = None
    is_system_tag: bool = False
    parent_tag_id: str | None = None


class TagUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    slug: str | None = Field(None, max_length=128)
    description: str | None = None
    color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    category: str | None = None
    is_system_tag: bool | None = None
    parent_tag_id: str | None = None


class AssignTagsRequest(BaseModel):
    tag_ids: list[str]
