"""Pydantic schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from template_studio.api.schemas.common import PaginationMeta


class UserInfoResponse(BaseModel):
    """Response schema for basic user information."""

    id: str
    name: str
    email: str
    is_admin: bool
    created_at: datetime


class UserSummaryResponse(UserInfoResponse):
    """User row in the admin listing, with activity counts."""

    customization_count: int = 0
    usage_event_count: int = 0


class UserListResponse(BaseModel):
    users: list[UserSummaryResponse]
    pagination: PaginationMeta


class UserCreateRequest(BaseModel):
    """Request schema for mirroring an identity-provider account."""

    id: str | None = Field(None, max_length=36, description="Id assigned by the identity provider")
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    is_admin: bool = False


class UserRoleRequest(BaseModel):
    is_admin: bool
