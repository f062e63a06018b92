"""Usage recorder service.

Usage events are an append-only log. Counters cached on the template
(``usage_count``, ``avg_rating``, ``total_ratings``) are maintained with
single UPDATE statements so concurrent writers never lose increments.
"""

from __future__ import annotations

import logging
from typing import Any, TypedDict

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from template_studio.constants import ACTION_TYPES, DOCUMENT_TYPES
from template_studio.data.db import get_session
from template_studio.data.models import Template, TemplateUsageEvent, User
from template_studio.errors import NotFoundError, ValidationError
from template_studio.services.customization import build_effective_document

logger = logging.getLogger(__name__)

__all__ = [
    "UsageEventData",
    "rate_template",
    "recompute_rating_stats",
    "record_event",
    "use_template",
]

_EVENT_FIELDS = (
    "customization_id",
    "document_id",
    "document_type",
    "session_id",
    "device_type",
    "user_agent",
    "browser_info",
    "load_time_ms",
    "render_time_ms",
    "interaction_time_ms",
    "time_on_page_seconds",
    "scroll_depth_percent",
    "clicks_count",
    "user_rating",
    "feedback",
    "converted_to_document",
    "conversion_time_seconds",
    "template_version",
    "country",
    "timezone",
)


class UsageEventData(TypedDict, total=False):
    """TypedDict for a usage event."""

    user_id: str
    template_id: str
    action_type: str
    customization_id: str | None
    document_id: str | None
    document_type: str
    session_id: str | None
    device_type: str | None
    user_agent: str | None
    browser_info: dict[str, Any] | None
    load_time_ms: int | None
    render_time_ms: int | None
    interaction_time_ms: int | None
    time_on_page_seconds: int | None
    scroll_depth_percent: int | None
    clicks_count: int | None
    user_rating: int | None
    feedback: str | None
    converted_to_document: bool
    conversion_time_seconds: int | None
    template_version: str | None
    country: str | None
    timezone: str | None


def _event_to_dict(event: TemplateUsageEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "user_id": event.user_id,
        "template_id": event.template_id,
        "customization_id": event.customization_id,
        "document_type": event.document_type,
        "action_type": event.action_type,
        "user_rating": event.user_rating,
        "converted_to_document": event.converted_to_document,
        "template_version": event.template_version,
        "created_at": event.created_at,
    }


def _validate_event(event: dict[str, Any]) -> None:
    issues = []
    for field in ("user_id", "template_id", "action_type"):
        if not event.get(field):
            issues.append(f"{field} is required")
    if event.get("action_type") and event["action_type"] not in ACTION_TYPES:
        issues.append(f"action_type must be one of {', '.join(ACTION_TYPES)}")
    if event.get("document_type") and event["document_type"] not in DOCUMENT_TYPES:
        issues.append(f"document_type must be one of {', '.join(DOCUMENT_TYPES)}")
    rating = event.get("user_rating")
    if rating is not None and not 1 <= rating <= 5:
        issues.append("user_rating must be between 1 and 5")
    scroll = event.get("scroll_depth_percent")
    if scroll is not None and not 0 <= scroll <= 100:
        issues.append("scroll_depth_percent must be between 0 and 100")
    if issues:
        raise ValidationError(issues)


def _insert_event(session: Session, event: dict[str, Any]) -> TemplateUsageEvent:
    template = session.get(Template, event["template_id"])
    if template is None:
        raise NotFoundError("Template", event["template_id"])
    if session.get(User, event["user_id"]) is None:
        raise NotFoundError("User", event["user_id"])

    row = TemplateUsageEvent(
        user_id=event["user_id"],
        template_id=event["template_id"],
        action_type=event["action_type"],
        document_type=template.document_type,
        template_version=template.version,
    )
    for field in _EVENT_FIELDS:
        if event.get(field) is not None:
            setattr(row, field, event[field])
    session.add(row)
    session.flush()
    return row


def record_event(event: UsageEventData) -> dict[str, Any]:
    """Append a usage event.

    ``document_type`` and ``template_version`` default to the template's.

    Raises:
        ValidationError: If required fields are missing or out of range.
        NotFoundError: If the user or template does not exist.
    """
    event = dict(event)
    _validate_event(event)
    with get_session() as session:
        return _event_to_dict(_insert_event(session, event))


def use_template(
    user_id: str, template_id: str, customization_id: str | None = None
) -> dict[str, Any]:
    """Select a template for a new document.

    Records a converted ``select`` event, bumps ``usage_count`` in place and
    returns the effective document the user starts from.

    Raises:
        NotFoundError: If the template is missing, inactive or not public.
        ForbiddenError: If the customization is not visible to the user.
    """
    with get_session() as session:
        template = session.get(Template, template_id)
        if template is None or not template.is_active or not template.is_public:
            raise NotFoundError("Template", template_id)

        document = build_effective_document(session, user_id, template_id, customization_id)
        event = _insert_event(
            session,
            {
                "user_id": user_id,
                "template_id": template_id,
                "customization_id": customization_id,
                "action_type": "select",
                "converted_to_document": True,
            },
        )
        session.execute(
            update(Template)
            .where(Template.id == template_id)
            .values(usage_count=Template.usage_count + 1)
        )
        logger.info("User %s selected template %s", user_id, template_id)
        return {"event_id": event.id, "document": document}


def _rating_stats(session: Session, template_id: str) -> dict[str, Any]:
    row = session.execute(
        select(Template.avg_rating, Template.total_ratings).where(Template.id == template_id)
    ).one()
    return {
        "template_id": template_id,
        "avg_rating": row.avg_rating,
        "total_ratings": row.total_ratings,
    }


def rate_template(
    user_id: str, template_id: str, rating: int, feedback: str | None = None
) -> dict[str, Any]:
    """Record a rating and fold it into the template's running mean.

    Returns:
        Dictionary with ``template_id``, ``avg_rating`` and ``total_ratings``
    """
    if not 1 <= rating <= 5:
        raise ValidationError(["rating must be between 1 and 5"])

    with get_session() as session:
        _insert_event(
            session,
            {
                "user_id": user_id,
                "template_id": template_id,
                "action_type": "preview",
                "user_rating": rating,
                "feedback": feedback,
            },
        )
        session.execute(
            update(Template)
            .where(Template.id == template_id)
            .values(
                avg_rating=(Template.avg_rating * Template.total_ratings + rating)
                / (Template.total_ratings + 1),
                total_ratings=Template.total_ratings + 1,
            )
        )
        return _rating_stats(session, template_id)


def recompute_rating_stats(template_id: str) -> dict[str, Any]:
    """Rebuild ``avg_rating`` and ``total_ratings`` from the event log."""
    with get_session() as session:
        if session.get(Template, template_id) is None:
            raise NotFoundError("Template", template_id)
        average, count = session.execute(
            select(
                func.avg(TemplateUsageEvent.user_rating),
                func.count(TemplateUsageEvent.user_rating),
            ).where(
                TemplateUsageEvent.template_id == template_id,
                TemplateUsageEvent.user_rating.is_not(None),
            )
        ).one()
        session.execute(
            update(Template)
            .where(Template.id == template_id)
            .values(avg_rating=float(average or 0), total_ratings=count)
        )
        return _rating_stats(session, template_id)
