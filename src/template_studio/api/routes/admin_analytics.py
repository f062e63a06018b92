"""Admin analytics routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from template_studio.api.dependencies import require_admin
from template_studio.api.schemas.common import MAX_LIMIT
from template_studio.api.schemas.usage import (
    ActivityType,
    MetricsResponse,
    RatingResponse,
    TimeRange,
    TrendGroup,
    TrendMetric,
)
from template_studio.services.analytics import (
    analytics_trends,
    compare_templates,
    conversion_funnel,
    engagement_metrics,
    lifecycle_analytics,
    performance_metrics,
    quality_metrics,
    recent_activity,
    refresh_template_metrics,
    system_stats,
    template_usage_breakdown,
)
from template_studio.services.usage import recompute_rating_stats

router = APIRouter(prefix="/admin/analytics", tags=["admin-analytics"])

TemplateId = Annotated[str, Path(description="Template ID")]
AdminId = Annotated[str, Depends(require_admin)]


@router.get("/funnel")
def funnel_endpoint(
    _admin: AdminId, template_id: str | None = None, time_range: TimeRange = "30d"
) -> list[dict]:
    """Preview, customize and select counts with conversion rates per template."""
    return conversion_funnel(template_id, time_range)


@router.get("/engagement")
def engagement_endpoint(
    _admin: AdminId, template_id: str | None = None, time_range: TimeRange = "30d"
) -> list[dict]:
    return engagement_metrics(template_id, time_range)


@router.get("/performance")
def performance_endpoint(
    _admin: AdminId, template_id: str | None = None, time_range: TimeRange = "30d"
) -> list[dict]:
    return performance_metrics(template_id, time_range)


@router.get("/usage")
def usage_endpoint(
    _admin: AdminId, template_id: str | None = None, time_range: TimeRange = "30d"
) -> dict:
    return template_usage_breakdown(template_id, time_range)


@router.get("/system")
def system_endpoint(_admin: AdminId) -> dict:
    return system_stats()


@router.post("/templates/{template_id}/refresh-metrics", response_model=MetricsResponse)
def refresh_metrics_endpoint(template_id: TemplateId, _admin: AdminId) -> MetricsResponse:
    """Recompute cached conversion, completion and export rates from the event log."""
    return MetricsResponse(**refresh_template_metrics(template_id))


@router.post("/templates/{template_id}/recompute-ratings", response_model=RatingResponse)
def recompute_ratings_endpoint(template_id: TemplateId, _admin: AdminId) -> RatingResponse:
    return RatingResponse(**recompute_rating_stats(template_id))


@router.get("/quality")
def quality_endpoint(
    _admin: AdminId,
    template_ids: Annotated[list[str] | None, Query()] = None,
    quality_threshold: Annotated[int, Query(ge=0, le=100)] = 70,
    include_details: bool = False,
) -> dict:
    """Quality grades, popularity scores and the templates below a quality threshold."""
    return quality_metrics(template_ids, quality_threshold, include_details)


@router.get("/compare")
def compare_endpoint(
    _admin: AdminId,
    template_ids: Annotated[list[str], Query(min_length=2)],
    time_range: TimeRange = "30d",
) -> dict:
    return compare_templates(template_ids, time_range)


@router.get("/trends")
def trends_endpoint(
    _admin: AdminId,
    metric: TrendMetric = "usage",
    time_range: TimeRange = "90d",
    group_by: TrendGroup = "week",
) -> dict:
    """Counts of a metric per day, week or month."""
    return analytics_trends(metric, time_range, group_by)


@router.get("/lifecycle")
def lifecycle_endpoint(_admin: AdminId, include_inactive: bool = False) -> list[dict]:
    return lifecycle_analytics(include_inactive)


@router.get("/activity")
def activity_endpoint(
    _admin: AdminId,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = 20,
    types: Annotated[list[ActivityType] | None, Query()] = None,
) -> list[dict]:
    """Newest template creations, user signups and usage events."""
    return recent_activity(limit, types)
