"""Pydantic schemas for usage and analytics endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ActionType = Literal["preview", "select", "customize", "export", "duplicate"]
TimeRange = Literal["7d", "30d", "90d", "1y"]
TrendMetric = Literal["usage", "conversions", "new_templates", "user_signups"]
TrendGroup = Literal["day", "week", "month"]
ActivityType = Literal["template_created", "user_signup", "template_usage"]


class UsageEventRequest(BaseModel):
    """Request schema for recording a usage event.

    The user is taken from the request identity.
    """

    template_id: str
    action_type: ActionType
    customization_id: str | None = None
    document_id: str | None = None
    document_type: Literal["resume", "cv", "cover_letter"] | None = None
    session_id: str | None = None
    device_type: str | None = None
    user_agent: str | None = None
    browser_info: dict[str, Any] | None = None
    load_time_ms: int | None = Field(None, ge=0)
    render_time_ms: int | None = Field(None, ge=0)
    interaction_time_ms: int | None = Field(None, ge=0)
    time_on_page_seconds: int | None = Field(None, ge=0)
    scroll_depth_percent: int | None = Field(None, ge=0, le=100)
    clicks_count: int | None = Field(None, ge=0)
    user_rating: int | None = Field(None, ge=1, le=5)
    feedback: str | None = None
    converted_to_document: bool = False
    conversion_time_seconds: int | None = Field(None, ge=0)
    country: str | None = None
    timezone: str | None = None


class UsageEventResponse(BaseModel):
    id: str
    user_id: str
    template_id: str
    customization_id: str | None = None
    document_type: str
    action_type: str
    user_rating: int | None = None
    converted_to_document: bool
    template_version: str | None = None
    created_at: datetime


class UseTemplateRequest(BaseModel):
    customization_id: str | None = None


class UseTemplateResponse(BaseModel):
    event_id: str
    document: dict[str, Any]


class RateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: str | None = None


class RatingResponse(BaseModel):
    template_id: str
    avg_rating: float
    total_ratings: int


class MetricsResponse(BaseModel):
    template_id: str
    conversion_rate: float
    completion_rate: float
    export_rate: float
