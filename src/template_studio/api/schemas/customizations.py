"""Pydantic schemas for customization endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class CustomizationResponse(BaseModel):
    """Response schema for a saved customization."""

    id: str
    user_id: str
    template_id: str
    custom_name: str | None = None
    description: str | None = None
    customizations: dict[str, Any]
    times_used: int
    last_used_at: datetime | None = None
    is_shared: bool
    share_token: str | None = None
    shared_with: list[dict[str, Any]] = Field(default_factory=list)
    base_template_version: str | None = None
    created_at: datetime
    updated_at: datetime


class CustomizationSaveRequest(BaseModel):
    """Request schema for creating or updating a customization.

    ``customizations`` is the patch document (``colorChanges``,
    ``sectionChanges``, ...); it is validated by the service.
    """

    template_id: str
    customizations: dict[str, Any] = Field(default_factory=dict)
    customization_id: str | None = Field(None, description="Existing customization to update")
    custom_name: str | None = Field(None, max_length=255)
    description: str | None = None
    is_shared: bool | None = None


class ShareGrantSchema(BaseModel):
    user_id: str
    permissions: list[Literal["view", "edit", "clone"]] = Field(..., min_length=1)


class ShareRequest(BaseModel):
    grants: list[ShareGrantSchema]
