"""Analytics over the usage event log and the template catalogue.

Event aggregates are computed from ``template_usage`` rows inside a time
window (``7d``, ``30d``, ``90d`` or ``1y``). Rates are ``None`` when their
denominator is zero. Quality, lifecycle and comparison reports read the
cached metrics on ``document_templates``.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import and_, case, func, update

from template_studio.constants import TIME_RANGE_DAYS
from template_studio.data.db import get_session
from template_studio.data.models import (
    Template,
    TemplateCustomization,
    TemplateUsageEvent,
    TemplateVersion,
    User,
)
from template_studio.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "analytics_trends",
    "compare_templates",
    "conversion_funnel",
    "engagement_metrics",
    "lifecycle_analytics",
    "performance_metrics",
    "quality_metrics",
    "recent_activity",
    "refresh_template_metrics",
    "system_stats",
    "template_usage_breakdown",
]

Event = TemplateUsageEvent

_QUALITY_GRADES = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))
_QUALITY_RANGES = ((90, "90-100"), (80, "80-89"), (70, "70-79"), (60, "60-69"), (0, "0-59"))
_TREND_METRICS = ("usage", "conversions", "new_templates", "user_signups")
_TREND_GROUPS = ("day", "week", "month")
_ACTIVITY_TYPES = ("template_created", "user_signup", "template_usage")


def _since(time_range: str) -> datetime:
    days = TIME_RANGE_DAYS.get(time_range)
    if days is None:
        raise ValidationError([f"time_range must be one of {', '.join(TIME_RANGE_DAYS)}"])
    return datetime.now(UTC) - timedelta(days=days)


def _rate(numerator: int | None, denominator: int | None) -> float | None:
    if not denominator:
        return None
    return round((numerator or 0) / denominator, 4)


def _mean(value: Any) -> float | None:
    return None if value is None else round(float(value), 2)


def _count_action(action: str):
    return func.count(case((Event.action_type == action, 1)))


def _window(query, template_id: str | None, time_range: str):
    query = query.filter(Event.created_at >= _since(time_range))
    if template_id:
        query = query.filter(Event.template_id == template_id)
    return query


def conversion_funnel(template_id: str | None = None, time_range: str = "30d") -> list[dict]:
    """Preview -> customize -> select funnel per template.

    ``conversions`` counts ``select`` events that produced a document.
    """
    previews = _count_action("preview")
    customizations = _count_action("customize")
    selections = _count_action("select")
    exports = _count_action("export")
    conversions = func.count(
        case((and_(Event.action_type == "select", Event.converted_to_document.is_(True)), 1))
    )

    with get_session() as session:
        query = session.query(
            Event.template_id,
            Template.name,
            previews.label("previews"),
            customizations.label("customizations"),
            selections.label("selections"),
            exports.label("exports"),
            conversions.label("conversions"),
        ).join(Template, Template.id == Event.template_id)
        rows = (
            _window(query, template_id, time_range)
            .group_by(Event.template_id, Template.name)
            .order_by(previews.desc(), Event.template_id)
            .all()
        )

    return [
        {
            "template_id": row.template_id,
            "template_name": row.name,
            "previews": row.previews,
            "customizations": row.customizations,
            "selections": row.selections,
            "exports": row.exports,
            "conversions": row.conversions,
            "customization_rate": _rate(row.customizations, row.previews),
            "selection_rate": _rate(row.selections, row.customizations),
            "conversion_rate": _rate(row.conversions, row.previews),
        }
        for row in rows
    ]


def engagement_metrics(template_id: str | None = None, time_range: str = "30d") -> list[dict]:
    """Interaction counts, unique users and mean engagement per template."""
    with get_session() as session:
        query = session.query(
            Event.template_id,
            _count_action("preview").label("views"),
            _count_action("select").label("selections"),
            _count_action("customize").label("customizations"),
            _count_action("export").label("exports"),
            func.count(func.distinct(Event.user_id)).label("unique_users"),
            func.avg(Event.time_on_page_seconds).label("avg_time_on_page"),
            func.avg(Event.scroll_depth_percent).label("avg_scroll_depth"),
            func.avg(Event.clicks_count).label("avg_clicks"),
        )
        rows = (
            _window(query, template_id, time_range)
            .group_by(Event.template_id)
            .order_by(Event.template_id)
            .all()
        )

    return [
        {
            "template_id": row.template_id,
            "views": row.views,
            "selections": row.selections,
            "customizations": row.customizations,
            "exports": row.exports,
            "unique_users": row.unique_users,
            "avg_time_on_page": _mean(row.avg_time_on_page),
            "avg_scroll_depth": _mean(row.avg_scroll_depth),
            "avg_clicks": _mean(row.avg_clicks),
        }
        for row in rows
    ]


def performance_metrics(template_id: str | None = None, time_range: str = "30d") -> list[dict]:
    """Mean load, render and interaction times per template and device type."""
    with get_session() as session:
        query = session.query(
            Event.template_id,
            Event.device_type,
            func.count(Event.id).label("events"),
            func.avg(Event.load_time_ms).label("avg_load_time_ms"),
            func.avg(Event.render_time_ms).label("avg_render_time_ms"),
            func.avg(Event.interaction_time_ms).label("avg_interaction_time_ms"),
        )
        rows = (
            _window(query, template_id, time_range)
            .group_by(Event.template_id, Event.device_type)
            .order_by(Event.template_id, Event.device_type)
            .all()
        )

    return [
        {
            "template_id": row.template_id,
            "device_type": row.device_type,
            "events": row.events,
            "avg_load_time_ms": _mean(row.avg_load_time_ms),
            "avg_render_time_ms": _mean(row.avg_render_time_ms),
            "avg_interaction_time_ms": _mean(row.avg_interaction_time_ms),
        }
        for row in rows
    ]


def template_usage_breakdown(
    template_id: str | None = None, time_range: str = "30d", top_countries: int = 10
) -> dict[str, Any]:
    """Event counts per template and action, plus the busiest countries."""
    converted = func.sum(case((Event.converted_to_document.is_(True), 1), else_=0))

    with get_session() as session:
        query = session.query(
            Event.template_id,
            Event.action_type,
            func.count(Event.id).label("events"),
            func.avg(Event.user_rating).label("avg_rating"),
            func.avg(Event.load_time_ms).label("avg_load_time_ms"),
            converted.label("converted"),
        )
        rows = (
            _window(query, template_id, time_range)
            .group_by(Event.template_id, Event.action_type)
            .order_by(Event.template_id, Event.action_type)
            .all()
        )

        country_query = session.query(Event.country, func.count(Event.id).label("events")).filter(
            Event.country.is_not(None)
        )
        countries = (
            _window(country_query, template_id, time_range)
            .group_by(Event.country)
            .order_by(func.count(Event.id).desc(), Event.country)
            .limit(top_countries)
            .all()
        )

    by_action = [
        {
            "template_id": row.template_id,
            "action_type": row.action_type,
            "events": row.events,
            "avg_rating": _mean(row.avg_rating),
            "avg_load_time_ms": _mean(row.avg_load_time_ms),
            "conversion_percent": _mean(100 * _rate(row.converted, row.events))
            if row.events
            else None,
        }
        for row in rows
    ]
    return {
        "by_action": by_action,
        "top_countries": [{"country": c.country, "events": c.events} for c in countries],
    }


def system_stats() -> dict[str, Any]:
    """Platform-wide totals for the admin dashboard."""
    with get_session() as session:
        templates = session.query(
            func.count(Template.id),
            func.count(case((Template.is_active.is_(True), 1))),
            func.count(case((Template.is_draft.is_(True), 1))),
            func.count(case((Template.is_premium.is_(True), 1))),
            func.count(case((Template.is_featured.is_(True), 1))),
        ).one()
        customizations = session.query(func.count(TemplateCustomization.id)).scalar()
        events = session.query(func.count(Event.id)).scalar()
        published = (
            session.query(func.count(TemplateVersion.id))
            .filter(TemplateVersion.is_published.is_(True))
            .scalar()
        )

    total, active, draft, premium, featured = templates
    return {
        "templates": {
            "total": total,
            "active": active,
            "draft": draft,
            "premium": premium,
            "featured": featured,
        },
        "customizations": customizations,
        "usage_events": events,
        "published_versions": published,
    }


def refresh_template_metrics(template_id: str) -> dict[str, Any]:
    """Recompute the cached conversion, completion and export rates of a template.

    Uses the whole event log. Rates with a zero denominator are stored as 0.
    """
    with get_session() as session:
        if session.get(Template, template_id) is None:
            raise NotFoundError("Template", template_id)

        previews, selections, exports, conversions = (
            session.query(
                _count_action("preview"),
                _count_action("select"),
                _count_action("export"),
                func.count(
                    case(
                        (
                            and_(
                                Event.action_type == "select",
                                Event.converted_to_document.is_(True),
                            ),
                            1,
                        )
                    )
                ),
            )
            .filter(Event.template_id == template_id)
            .one()
        )

        metrics = {
            "conversion_rate": _rate(conversions, previews) or 0.0,
            "completion_rate": _rate(exports, selections) or 0.0,
            "export_rate": _rate(exports, previews) or 0.0,
        }
        session.execute(update(Template).where(Template.id == template_id).values(**metrics))
        logger.info("Refreshed metrics of template %s: %s", template_id, metrics)
        return {"template_id": template_id, **metrics}


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; they were written in UTC.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _quality_grade(score: int | None) -> str:
    for threshold, grade in _QUALITY_GRADES:
        if (score or 0) >= threshold:
            return grade
    return "F"


def _quality_range(score: int | None) -> str:
    for threshold, label in _QUALITY_RANGES:
        if (score or 0) >= threshold:
            return label
    return "0-59"


def _popularity_score(template: Template) -> float:
    return round(
        template.usage_count * 0.4
        + template.avg_rating * template.total_ratings * 0.3
        + template.conversion_rate * 100 * 0.3,
        2,
    )


def quality_metrics(
    template_ids: list[str] | None = None,
    quality_threshold: int = 70,
    include_details: bool = False,
) -> dict[str, Any]:
    """Quality grades, popularity scores and the quality distribution.

    Popularity weighs usage (0.4), rating volume (0.3) and conversion (0.3).
    Templates without a ``quality_score`` count as 0.

    Args:
        template_ids: Restrict to these templates; all templates when omitted
        quality_threshold: Score below which a template is listed in
            ``below_threshold``
        include_details: Include review notes

    Returns:
        Dictionary with ``templates`` (best score first), ``quality_distribution``
        and ``below_threshold``
    """
    with get_session() as session:
        query = session.query(Template)
        if template_ids:
            query = query.filter(Template.id.in_(template_ids))
        rows = query.all()

        templates = [
            {
                "template_id": row.id,
                "template_name": row.name,
                "quality_score": row.quality_score,
                "quality_grade": _quality_grade(row.quality_score),
                "popularity_score": _popularity_score(row),
                "usage_count": row.usage_count,
                "avg_rating": row.avg_rating,
                "total_ratings": row.total_ratings,
                "conversion_rate": row.conversion_rate,
                "review_status": row.review_status,
                "review_notes": row.review_notes if include_details else None,
            }
            for row in rows
        ]

    templates.sort(key=lambda t: (-(t["quality_score"] or 0), t["template_name"]))
    counts = Counter(_quality_range(t["quality_score"]) for t in templates)
    return {
        "templates": templates,
        "quality_distribution": [
            {"range": label, "count": counts.get(label, 0)}
            for _, label in _QUALITY_RANGES
        ],
        "below_threshold": [t for t in templates if (t["quality_score"] or 0) < quality_threshold],
    }


def compare_templates(template_ids: list[str], time_range: str = "30d") -> dict[str, Any]:
    """Side-by-side metrics for two or more templates.

    ``recent_events`` and ``recent_conversions`` are counted inside
    ``time_range``; the other metrics are the cached totals.

    Raises:
        ValidationError: If fewer than two distinct templates are given.
        NotFoundError: If a template does not exist.
    """
    ids = list(dict.fromkeys(template_ids))
    if len(ids) < 2:
        raise ValidationError(["Compare at least two templates"])
    since = _since(time_range)

    with get_session() as session:
        rows = session.query(Template).filter(Template.id.in_(ids)).order_by(Template.name).all()
        missing = set(ids) - {row.id for row in rows}
        if missing:
            raise NotFoundError("Template", sorted(missing)[0])

        recent = {
            row.template_id: row
            for row in session.query(
                Event.template_id,
                func.count(Event.id).label("events"),
                func.count(case((Event.converted_to_document.is_(True), 1))).label("conversions"),
            )
            .filter(Event.template_id.in_(ids), Event.created_at >= since)
            .group_by(Event.template_id)
            .all()
        }

        comparison = [
            {
                "template_id": row.id,
                "template_name": row.name,
                "category": row.category,
                "quality_score": row.quality_score,
                "usage_count": row.usage_count,
                "avg_rating": row.avg_rating,
                "total_ratings": row.total_ratings,
                "conversion_rate": row.conversion_rate,
                "recent_events": recent[row.id].events if row.id in recent else 0,
                "recent_conversions": recent[row.id].conversions if row.id in recent else 0,
            }
            for row in rows
        ]

    def best(metric: str) -> str:
        return max(comparison, key=lambda t: t[metric] or 0)["template_id"]

    return {
        "comparison": comparison,
        "insights": {
            "most_used": best("usage_count"),
            "highest_rated": best("avg_rating"),
            "highest_conversion": best("conversion_rate"),
        },
        "time_range": time_range,
    }


def _period(value: datetime, group_by: str) -> str:
    day = _as_utc(value).date()
    if group_by == "week":
        day -= timedelta(days=day.weekday())
    elif group_by == "month":
        day = day.replace(day=1)
    return day.isoformat()


def analytics_trends(
    metric: str = "usage", time_range: str = "90d", group_by: str = "week"
) -> dict[str, Any]:
    """Counts per day, week (starting Monday) or month.

    Metrics: ``usage`` (events), ``conversions`` (events that produced a
    document), ``new_templates`` and ``user_signups``. Periods without any
    count are omitted.
    """
    if metric not in _TREND_METRICS:
        raise ValidationError([f"metric must be one of {', '.join(_TREND_METRICS)}"])
    if group_by not in _TREND_GROUPS:
        raise ValidationError([f"group_by must be one of {', '.join(_TREND_GROUPS)}"])
    since = _since(time_range)

    with get_session() as session:
        if metric == "new_templates":
            query = session.query(Template.created_at).filter(Template.created_at >= since)
        elif metric == "user_signups":
            query = session.query(User.created_at).filter(User.created_at >= since)
        else:
            query = session.query(Event.created_at).filter(Event.created_at >= since)
            if metric == "conversions":
                query = query.filter(Event.converted_to_document.is_(True))
        counts = Counter(_period(created_at, group_by) for (created_at,) in query.all())

    return {
        "metric": metric,
        "time_range": time_range,
        "group_by": group_by,
        "points": [{"period": period, "value": counts[period]} for period in sorted(counts)],
    }


def _maturity_stage(days: int, usage_count: int) -> str:
    if days <= 30:
        return "new"
    if days <= 90:
        return "growing"
    if usage_count > 100:
        return "mature"
    return "stable"


def lifecycle_analytics(include_inactive: bool = False) -> list[dict[str, Any]]:
    """Age, version count, usage velocity and maturity stage per template, newest first.

    ``usage_velocity`` is uses per day of age; None on a template's first day.
    """
    now = datetime.now(UTC)
    with get_session() as session:
        query = session.query(Template)
        if not include_inactive:
            query = query.filter(Template.is_active.is_(True))
        templates = query.order_by(Template.created_at.desc(), Template.id).all()

        version_counts = dict(
            session.query(TemplateVersion.template_id, func.count(TemplateVersion.id))
            .group_by(TemplateVersion.template_id)
            .all()
        )

        result = []
        for template in templates:
            days = (now - _as_utc(template.created_at)).days
            result.append(
                {
                    "template_id": template.id,
                    "template_name": template.name,
                    "created_at": template.created_at,
                    "version": template.version,
                    "total_versions": version_counts.get(template.id, 0),
                    "days_since_creation": days,
                    "usage_velocity": round(template.usage_count / days, 2) if days else None,
                    "maturity_stage": _maturity_stage(days, template.usage_count),
                }
            )
        return result


def recent_activity(limit: int = 20, types: list[str] | None = None) -> list[dict[str, Any]]:
    """Newest template creations, user signups and usage events, merged.

    Args:
        limit: Maximum number of entries returned
        types: Any of ``template_created``, ``user_signup`` and
            ``template_usage``; all when omitted
    """
    types = types or list(_ACTIVITY_TYPES)
    unknown = set(types) - set(_ACTIVITY_TYPES)
    if unknown:
        raise ValidationError([f"Unknown activity type: {name}" for name in sorted(unknown)])

    activity: list[dict[str, Any]] = []
    with get_session() as session:
        if "template_created" in types:
            for template in (
                session.query(Template).order_by(Template.created_at.desc()).limit(limit).all()
            ):
                activity.append(
                    {
                        "id": template.id,
                        "type": "template_created",
                        "description": f"Template created: {template.name}",
                        "created_at": _as_utc(template.created_at),
                        "metadata": {"name": template.name, "category": template.category},
                    }
                )
        if "user_signup" in types:
            for user in session.query(User).order_by(User.created_at.desc()).limit(limit).all():
                activity.append(
                    {
                        "id": user.id,
                        "type": "user_signup",
                        "description": f"New user: {user.name or user.email}",
                        "created_at": _as_utc(user.created_at),
                        "metadata": {"name": user.name, "email": user.email},
                    }
                )
        if "template_usage" in types:
            rows = (
                session.query(Event, Template.name)
                .join(Template, Template.id == Event.template_id)
                .order_by(Event.created_at.desc())
                .limit(limit)
                .all()
            )
            for event, template_name in rows:
                activity.append(
                    {
                        "id": event.id,
                        "type": "template_usage",
                        "description": f"{event.action_type} of {template_name}",
                        "created_at": _as_utc(event.created_at),
                        "metadata": {
                            "template_id": event.template_id,
                            "user_id": event.user_id,
                            "action_type": event.action_type,
                        },
                    }
                )

    activity.sort(key=lambda entry: entry["created_at"], reverse=True)
    return activity[:limit]
