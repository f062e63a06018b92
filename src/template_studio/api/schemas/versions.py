"""Pydantic schemas for version ledger endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class VersionResponse(BaseModel):
    """Response schema for a template version."""

    id: str
    template_id: str
    version_number: str
    version_type: str
    snapshot: dict[str, Any]
    changelog_notes: str | None = None
    is_breaking: bool
    backward_compatible: bool
    deprecated_features: list[str] = Field(default_factory=list)
    migration_notes: str | None = None
    is_published: bool
    published_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime


class VersionCreateRequest(BaseModel):
    """Request schema for snapshotting the current state of a template."""

    version_number: str = Field(..., min_length=1, max_length=64)
    version_type: Literal["major", "minor", "patch"] = "minor"
    changelog_notes: str | None = None
    is_breaking: bool = False
    backward_compatible: bool = True
    deprecated_features: list[str] = Field(default_factory=list)
    migration_notes: str | None = None


class PublishRequest(BaseModel):
    unpublish_others: bool = Field(True, description="Unpublish every other version first")


class RevertRequest(BaseModel):
    version_id: str
    create_backup: bool = Field(True, description="Snapshot the current state before reverting")


class RevertResponse(BaseModel):
    template_id: str
    version: str
    backup_version_id: str | None = None
