"""Curated template collections service."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, TypedDict

from sqlalchemy import func
from sqlalchemy.orm import Session

from template_studio.data.db import get_session
from template_studio.data.models import Template, TemplateCollection, TemplateCollectionItem
from template_studio.errors import NotFoundError, ValidationError
from template_studio.services.tags import slugify

logger = logging.getLogger(__name__)

__all__ = [
    "CollectionData",
    "add_templates",
    "create_collection",
    "delete_collection",
    "get_collection",
    "get_template_collections",
    "list_collections",
    "remove_templates",
    "update_collection",
]

_COLLECTION_FIELDS = (
    "name",
    "slug",
    "description",
    "cover_image_url",
    "color",
    "icon",
    "order",
    "parent_collection_id",
    "is_active",
    "is_featured",
    "is_premium",
    "is_curated",
)


class CollectionData(TypedDict, total=False):
    """TypedDict for collection data."""

    name: str
    slug: str
    description: str | None
    cover_image_url: str | None
    color: str
    icon: str | None
    order: int
    parent_collection_id: str | None
    is_active: bool
    is_featured: bool
    is_premium: bool
    is_curated: bool


def _collection_to_dict(collection: TemplateCollection, template_count: int = 0) -> dict:
    return {
        "id": collection.id,
        "name": collection.name,
        "slug": collection.slug,
        "description": collection.description,
        "cover_image_url": collection.cover_image_url,
        "color": collection.color,
        "icon": collection.icon,
        "order": collection.order,
        "parent_collection_id": collection.parent_collection_id,
        "is_active": collection.is_active,
        "is_featured": collection.is_featured,
        "is_premium": collection.is_premium,
        "is_curated": collection.is_curated,
        "curated_by": collection.curated_by,
        "curated_at": collection.curated_at,
        "template_count": template_count,
        "created_at": collection.created_at,
        "updated_at": collection.updated_at,
    }


def _item_to_dict(item: TemplateCollectionItem, template: Template) -> dict:
    return {
        "template_id": item.template_id,
        "name": template.name,
        "category": template.category,
        "document_type": template.document_type,
        "order": item.order,
        "is_featured": item.is_featured,
        "added_reason": item.added_reason,
        "added_at": item.added_at,
    }


def _get_collection(session: Session, collection_id: str) -> TemplateCollection:
    collection = session.get(TemplateCollection, collection_id)
    if collection is None:
        raise NotFoundError("Collection", collection_id)
    return collection


def _ensure_slug_free(session: Session, slug: str, exclude_id: str | None = None) -> None:
    query = session.query(TemplateCollection).filter(TemplateCollection.slug == slug)
    if exclude_id:
        query = query.filter(TemplateCollection.id != exclude_id)
    if query.first() is not None:
        raise ValidationError([f"Collection slug '{slug}' is already in use"])


def _apply_curation(collection: TemplateCollection, data: dict, user_id: str | None) -> None:
    if data.get("is_curated"):
        collection.curated_by = user_id
        collection.curated_at = datetime.now(UTC)
    elif data.get("is_curated") is False:
        collection.curated_by = None
        collection.curated_at = None


def list_collections(
    is_active: bool | None = None,
    is_featured: bool | None = None,
    parent_collection_id: str | None = None,
) -> list[dict]:
    """Collections with their template counts, in display order."""
    with get_session() as session:
        count = func.count(TemplateCollectionItem.id)
        query = session.query(TemplateCollection, count).outerjoin(
            TemplateCollectionItem,
            TemplateCollectionItem.collection_id == TemplateCollection.id,
        )
        if is_active is not None:
            query = query.filter(TemplateCollection.is_active == is_active)
        if is_featured is not None:
            query = query.filter(TemplateCollection.is_featured == is_featured)
        if parent_collection_id:
            query = query.filter(TemplateCollection.parent_collection_id == parent_collection_id)
        rows = (
            query.group_by(TemplateCollection.id)
            .order_by(TemplateCollection.order, TemplateCollection.name)
            .all()
        )
        return [_collection_to_dict(collection, n) for collection, n in rows]


def get_collection(collection_id: str) -> dict:
    """A collection with its templates in item order."""
    with get_session() as session:
        collection = _get_collection(session, collection_id)
        rows = (
            session.query(TemplateCollectionItem, Template)
            .join(Template, Template.id == TemplateCollectionItem.template_id)
            .filter(TemplateCollectionItem.collection_id == collection_id)
            .order_by(TemplateCollectionItem.order)
            .all()
        )
        result = _collection_to_dict(collection, len(rows))
        result["templates"] = [_item_to_dict(item, template) for item, template in rows]
        return result


def create_collection(data: CollectionData, created_by: str | None = None) -> dict:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError(["name is required"])

    with get_session() as session:
        slug = data.get("slug") or slugify(name)
        _ensure_slug_free(session, slug)
        if data.get("parent_collection_id"):
            _get_collection(session, data["parent_collection_id"])

        collection = TemplateCollection(created_by=created_by)
        for field in _COLLECTION_FIELDS:
            if field in data:
                setattr(collection, field, data[field])
        collection.name = name
        collection.slug = slug
        _apply_curation(collection, dict(data), created_by)
        session.add(collection)
        session.flush()
        logger.info("Created collection %s (%s)", collection.id, slug)
        return _collection_to_dict(collection)


def update_collection(
    collection_id: str, data: CollectionData, updated_by: str | None = None
) -> dict:
    with get_session() as session:
        collection = _get_collection(session, collection_id)
        updates = dict(data)
        if updates.get("slug"):
            _ensure_slug_free(session, updates["slug"], exclude_id=collection_id)
        parent_id = updates.get("parent_collection_id")
        if parent_id:
            if parent_id == collection_id:
                raise ValidationError(["A collection cannot be its own parent"])
            _get_collection(session, parent_id)

        for field in _COLLECTION_FIELDS:
            if field in updates:
                setattr(collection, field, updates[field])
        if "is_curated" in updates:
            _apply_curation(collection, updates, updated_by)
        session.flush()
        count = (
            session.query(func.count(TemplateCollectionItem.id))
            .filter(TemplateCollectionItem.collection_id == collection_id)
            .scalar()
        )
        return _collection_to_dict(collection, count)


def delete_collection(collection_id: str, move_templates_to: str | None = None) -> dict:
    """Delete a collection, optionally moving its templates into another one.

    Templates already present in the target keep their existing item there.
    """
    with get_session() as session:
        _get_collection(session, collection_id)
        moved = 0
        if move_templates_to:
            if move_templates_to == collection_id:
                raise ValidationError(["Cannot move templates into the deleted collection"])
            _get_collection(session, move_templates_to)
            in_target = {
                template_id
                for (template_id,) in session.query(TemplateCollectionItem.template_id).filter(
                    TemplateCollectionItem.collection_id == move_templates_to
                )
            }
            items = (
                session.query(TemplateCollectionItem)
                .filter(TemplateCollectionItem.collection_id == collection_id)
                .all()
            )
            for item in items:
                if item.template_id in in_target:
                    session.delete(item)
                else:
                    item.collection_id = move_templates_to
                    moved += 1
            session.flush()

        session.query(TemplateCollection).filter(
            TemplateCollection.id == collection_id
        ).delete(synchronize_session=False)
        logger.info("Deleted collection %s (%d templates moved)", collection_id, moved)
        return {"id": collection_id, "moved": moved, "moved_to": move_templates_to}


def add_templates(
    collection_id: str,
    template_ids: list[str],
    start_order: int = 0,
    added_reason: str | None = None,
    added_by: str | None = None,
) -> dict:
    """Add templates to a collection in the given order.

    Existing items for the same templates are replaced, so re-adding a
    template moves it to its new position.
    """
    template_ids = list(dict.fromkeys(template_ids))
    with get_session() as session:
        _get_collection(session, collection_id)
        found = {
            template_id
            for (template_id,) in session.query(Template.id).filter(Template.id.in_(template_ids))
        }
        missing = [template_id for template_id in template_ids if template_id not in found]
        if missing:
            raise NotFoundError("Template", missing[0])

        session.query(TemplateCollectionItem).filter(
            TemplateCollectionItem.collection_id == collection_id,
            TemplateCollectionItem.template_id.in_(template_ids),
        ).delete(synchronize_session=False)
        session.add_all(
            TemplateCollectionItem(
                collection_id=collection_id,
                template_id=template_id,
                order=start_order + index,
                added_reason=added_reason,
                added_by=added_by,
            )
            for index, template_id in enumerate(template_ids)
        )
        session.flush()
        return {"collection_id": collection_id, "added": len(template_ids)}


def remove_templates(collection_id: str, template_ids: list[str]) -> dict:
    with get_session() as session:
        _get_collection(session, collection_id)
        removed = (
            session.query(TemplateCollectionItem)
            .filter(
                TemplateCollectionItem.collection_id == collection_id,
                TemplateCollectionItem.template_id.in_(template_ids),
            )
            .delete(synchronize_session=False)
        )
        return {"collection_id": collection_id, "removed": removed}


def get_template_collections(template_id: str) -> list[dict]:
    """Collections that contain a template."""
    with get_session() as session:
        if session.get(Template, template_id) is None:
            raise NotFoundError("Template", template_id)
        collections = (
            session.query(TemplateCollection)
            .join(
                TemplateCollectionItem,
                TemplateCollectionItem.collection_id == TemplateCollection.id,
            )
            .filter(TemplateCollectionItem.template_id == template_id)
            .order_by(TemplateCollection.order, TemplateCollection.name)
            .all()
        )
        return [_collection_to_dict(c) for c in collections]
