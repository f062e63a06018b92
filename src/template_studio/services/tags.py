"""Tag catalogue service.

Tags are admin-managed labels attached to templates through
``template_tag_relations``. A tag's ``usage_count`` is the number of
templates it is attached to.
"""

from __future__ import annotations

import logging
import re
from typing import Any, TypedDict

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from template_studio.data.db import get_session
from template_studio.data.models import Template, TemplateTag, TemplateTagRelation
from template_studio.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "TagData",
    "assign_tags",
    "create_tag",
    "delete_tag",
    "get_template_tags",
    "list_tags",
    "slugify",
    "update_tag",
]

_TAG_FIELDS = (
    "name",
    "slug",
    "description",
    "color",
    "category",
    "is_system_tag",
    "parent_tag_id",
)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class TagData(TypedDict, total=False):
    """TypedDict for tag data."""

    name: str
    slug: str
    description: str | None
    color: str
    category: str | None
    is_system_tag: bool
    parent_tag_id: str | None


def slugify(name: str) -> str:
    """Lowercase ``name`` and collapse every run of non-alphanumerics to ``-``."""
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def _tag_to_dict(tag: TemplateTag) -> dict[str, Any]:
    return {
        "id": tag.id,
        "name": tag.name,
        "slug": tag.slug,
        "description": tag.description,
        "color": tag.color,
        "category": tag.category,
        "is_system_tag": tag.is_system_tag,
        "usage_count": tag.usage_count,
        "parent_tag_id": tag.parent_tag_id,
        "created_by": tag.created_by,
        "created_at": tag.created_at,
        "updated_at": tag.updated_at,
    }


def _get_tag(session: Session, tag_id: str) -> TemplateTag:
    tag = session.get(TemplateTag, tag_id)
    if tag is None:
        raise NotFoundError("Tag", tag_id)
    return tag


def _ensure_unique(
    session: Session, name: str | None, slug: str | None, exclude_id: str | None = None
) -> None:
    clauses = []
    if name:
        clauses.append(TemplateTag.name == name)
    if slug:
        clauses.append(TemplateTag.slug == slug)
    if not clauses:
        return
    query = session.query(TemplateTag).filter(or_(*clauses))
    if exclude_id:
        query = query.filter(TemplateTag.id != exclude_id)
    if query.first() is not None:
        raise ValidationError(["A tag with this name or slug already exists"])


def list_tags(
    category: str | None = None,
    is_system_tag: bool | None = None,
    search: str | None = None,
    parent_tag_id: str | None = None,
) -> list[dict[str, Any]]:
    """Tags ordered by usage, then name."""
    with get_session() as session:
        query = session.query(TemplateTag)
        if category:
            query = query.filter(TemplateTag.category == category)
        if is_system_tag is not None:
            query = query.filter(TemplateTag.is_system_tag == is_system_tag)
        if parent_tag_id:
            query = query.filter(TemplateTag.parent_tag_id == parent_tag_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(TemplateTag.name.ilike(pattern), TemplateTag.description.ilike(pattern))
            )
        tags = query.order_by(TemplateTag.usage_count.desc(), TemplateTag.name).all()
        return [_tag_to_dict(tag) for tag in tags]


def create_tag(data: TagData, created_by: str | None = None) -> dict[str, Any]:
    """Create a tag, deriving the slug from the name when none is given.

    Raises:
        ValidationError: If the name is missing or the name/slug is taken.
        NotFoundError: If ``parent_tag_id`` does not exist.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError(["name is required"])
    slug = data.get("slug") or slugify(name)

    with get_session() as session:
        _ensure_unique(session, name, slug)
        if data.get("parent_tag_id"):
            _get_tag(session, data["parent_tag_id"])

        tag = TemplateTag(created_by=created_by)
        for field in _TAG_FIELDS:
            if field in data:
                setattr(tag, field, data[field])
        tag.name = name
        tag.slug = slug
        session.add(tag)
        session.flush()
        logger.info("Created tag %s (%s)", tag.id, tag.slug)
        return _tag_to_dict(tag)


def update_tag(tag_id: str, data: TagData) -> dict[str, Any]:
    """Update a tag; renaming without an explicit slug re-derives the slug."""
    with get_session() as session:
        tag = _get_tag(session, tag_id)
        updates = dict(data)
        if updates.get("name") and "slug" not in updates:
            updates["slug"] = slugify(updates["name"])
        _ensure_unique(session, updates.get("name"), updates.get("slug"), exclude_id=tag_id)
        if updates.get("parent_tag_id"):
            if updates["parent_tag_id"] == tag_id:
                raise ValidationError(["A tag cannot be its own parent"])
            _get_tag(session, updates["parent_tag_id"])

        for field in _TAG_FIELDS:
            if field in updates:
                setattr(tag, field, updates[field])
        session.flush()
        return _tag_to_dict(tag)


def delete_tag(tag_id: str) -> None:
    """Delete a tag; its template relations go with it."""
    with get_session() as session:
        tag = _get_tag(session, tag_id)
        session.delete(tag)
        logger.info("Deleted tag %s", tag_id)


def assign_tags(
    template_id: str, tag_ids: list[str], created_by: str | None = None
) -> list[dict[str, Any]]:
    """Replace the tags attached to a template.

    Previously attached tags lose one use and newly attached tags gain one,
    each through a single UPDATE.

    Raises:
        NotFoundError: If the template or any tag does not exist.
    """
    tag_ids = list(dict.fromkeys(tag_ids))
    with get_session() as session:
        if session.get(Template, template_id) is None:
            raise NotFoundError("Template", template_id)
        for tag_id in tag_ids:
            _get_tag(session, tag_id)

        previous = [
            tag_id
            for (tag_id,) in session.query(TemplateTagRelation.tag_id).filter(
                TemplateTagRelation.template_id == template_id
            )
        ]
        session.query(TemplateTagRelation).filter(
            TemplateTagRelation.template_id == template_id
        ).delete(synchronize_session=False)
        if previous:
            session.execute(
                update(TemplateTag)
                .where(TemplateTag.id.in_(previous))
                .values(usage_count=TemplateTag.usage_count - 1)
            )

        session.add_all(
            TemplateTagRelation(template_id=template_id, tag_id=tag_id, created_by=created_by)
            for tag_id in tag_ids
        )
        if tag_ids:
            session.execute(
                update(TemplateTag)
                .where(TemplateTag.id.in_(tag_ids))
                .values(usage_count=TemplateTag.usage_count + 1)
            )
        session.flush()
        return _template_tags(session, template_id)


def _template_tags(session: Session, template_id: str) -> list[dict[str, Any]]:
    tags = (
        session.query(TemplateTag)
        .join(TemplateTagRelation, TemplateTagRelation.tag_id == TemplateTag.id)
        .filter(TemplateTagRelation.template_id == template_id)
        .order_by(TemplateTag.name)
        .populate_existing()
        .all()
    )
    return [_tag_to_dict(tag) for tag in tags]


def get_template_tags(template_id: str) -> list[dict[str, Any]]:
    with get_session() as session:
        if session.get(Template, template_id) is None:
            raise NotFoundError("Template", template_id)
        return _template_tags(session, template_id)
