"""Template store service.

CRUD, search, duplication and bulk administration of document templates.
Every write that also touches the version ledger or dependent rows runs in a
single session, so it either fully happens or not at all.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, TypedDict

from sqlalchemy import String, cast, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from template_studio.constants import (
    CATEGORIES,
    DEFAULT_LIMIT,
    DOCUMENT_TYPES,
    MAX_INHERITANCE_DEPTH,
    MAX_LIMIT,
    REVIEW_STATUSES,
    SIGNIFICANT_FIELDS,
    VARIANT_TYPES,
)
from template_studio.data.db import get_session
from template_studio.data.models import Template, TemplateCustomization, TemplateVersion
from template_studio.errors import (
    CycleError,
    DependencyError,
    NotFoundError,
    TemplateStudioError,
    ValidationError,
)
from template_studio.services.inheritance import (
    exceeds_depth_limit,
    merge_documents,
    resolve_in_session,
    would_create_cycle,
)
from template_studio.services.validation import ensure_valid_documents
from template_studio.services.version_ledger import append_snapshot, version_to_dict

logger = logging.getLogger(__name__)

__all__ = [
    "TemplateData",
    "TemplateFilters",
    "browse_templates",
    "bulk_change_status",
    "bulk_delete_templates",
    "bulk_toggle_featured",
    "bulk_update_templates",
    "create_from_base",
    "create_template",
    "delete_template",
    "duplicate_template",
    "get_template",
    "get_template_details",
    "list_templates",
    "update_template",
]

# Fields that can be written through create/update
_TEMPLATE_FIELDS = (
    "name",
    "description",
    "category",
    "document_type",
    "parent_template_id",
    "base_template_id",
    "is_base_template",
    "is_variant",
    "variant_type",
    "variant_name",
    "template_structure",
    "design_config",
    "sample_content",
    "component_code",
    "component_version",
    "target_specializations",
    "target_industries",
    "target_experience_level",
    "tags",
    "search_keywords",
    "is_active",
    "is_draft",
    "is_public",
    "is_premium",
    "is_featured",
    "featured_order",
    "featured_until",
    "review_status",
    "review_notes",
    "quality_score",
    "version",
)

# Fields a bulk update may touch; documents always go through update_template.
_BULK_FIELDS = (
    "category",
    "document_type",
    "tags",
    "target_specializations",
    "target_industries",
    "target_experience_level",
    "is_active",
    "is_draft",
    "is_public",
    "is_premium",
    "is_featured",
    "review_status",
    "version",
)

_ENUM_FIELDS = {
    "category": CATEGORIES,
    "document_type": DOCUMENT_TYPES,
    "review_status": REVIEW_STATUSES,
    "variant_type": VARIANT_TYPES,
}

# Columns that must never be written as None
_NOT_NULL_FIELDS = (
    "name",
    "category",
    "document_type",
    "template_structure",
    "design_config",
    "sample_content",
    "component_version",
    "target_specializations",
    "target_industries",
    "tags",
    "is_base_template",
    "is_variant",
    "is_active",
    "is_draft",
    "is_public",
    "is_premium",
    "is_featured",
    "review_status",
    "version",
)

_SORT_COLUMNS = {
    "name": Template.name,
    "created": Template.created_at,
    "updated": Template.updated_at,
    "usage": Template.usage_count,
    "rating": Template.avg_rating,
    "quality": Template.quality_score,
    "completion_rate": Template.completion_rate,
    "export_rate": Template.export_rate,
}

# Metric columns that back the *_min filters
_MIN_FILTERS = {
    "quality_score_min": Template.quality_score,
    "usage_count_min": Template.usage_count,
    "avg_rating_min": Template.avg_rating,
    "completion_rate_min": Template.completion_rate,
    "export_rate_min": Template.export_rate,
}


class TemplateData(TypedDict, total=False):
    """TypedDict for template data (snake_case keys, documents as camelCase JSON)."""

    name: str
    description: str | None
    category: str
    document_type: str
    parent_template_id: str | None
    base_template_id: str | None
    is_base_template: bool
    is_variant: bool
    variant_type: str | None
    variant_name: str | None
    template_structure: dict[str, Any]
    design_config: dict[str, Any]
    sample_content: dict[str, Any]
    component_code: str | None
    component_version: str
    target_specializations: list[str]
    target_industries: list[str]
    target_experience_level: str | None
    tags: list[str]
    search_keywords: str | None
    is_active: bool
    is_draft: bool
    is_public: bool
    is_premium: bool
    is_featured: bool
    featured_order: int | None
    featured_until: datetime | None
    review_status: str
    review_notes: str | None
    quality_score: int | None
    version: str


class TemplateFilters(TypedDict, total=False):
    """Filters accepted by list_templates."""

    category: str
    document_type: str
    is_active: bool
    is_draft: bool
    review_status: str
    has_parent: bool
    is_base_template: bool
    is_variant: bool
    base_template_id: str
    variant_type: str
    is_featured: bool
    quality_score_min: int
    usage_count_min: int
    avg_rating_min: float
    completion_rate_min: float
    export_rate_min: float
    tags: list[str]
    search: str
    created_by: str
    created_from: datetime
    created_to: datetime
    sort_by: str
    sort_order: str
    limit: int
    offset: int
    include_variants: bool


def _template_to_dict(template: Template) -> dict[str, Any]:
    """Convert a Template model to a dictionary.

    Args:
        template: Template model instance

    Returns:
        Dictionary with every stored column; documents are returned as
        stored (sparse overrides for templates with a parent).
    """
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "category": template.category,
        "document_type": template.document_type,
        "parent_template_id": template.parent_template_id,
        "base_template_id": template.base_template_id,
        "is_base_template": template.is_base_template,
        "is_variant": template.is_variant,
        "variant_type": template.variant_type,
        "variant_name": template.variant_name,
        "template_structure": template.template_structure,
        "design_config": template.design_config,
        "sample_content": template.sample_content,
        "component_code": template.component_code,
        "component_version": template.component_version,
        "target_specializations": list(template.target_specializations or []),
        "target_industries": list(template.target_industries or []),
        "target_experience_level": template.target_experience_level,
        "tags": list(template.tags or []),
        "search_keywords": template.search_keywords,
        "is_active": template.is_active,
        "is_draft": template.is_draft,
        "is_public": template.is_public,
        "is_premium": template.is_premium,
        "is_featured": template.is_featured,
        "featured_order": template.featured_order,
        "featured_until": template.featured_until,
        "review_status": template.review_status,
        "review_notes": template.review_notes,
        "quality_score": template.quality_score,
        "version": template.version,
        "usage_count": template.usage_count,
        "avg_rating": template.avg_rating,
        "total_ratings": template.total_ratings,
        "conversion_rate": template.conversion_rate,
        "completion_rate": template.completion_rate,
        "export_rate": template.export_rate,
        "created_by": template.created_by,
        "updated_by": template.updated_by,
        "created_at": template.created_at,
        "updated_at": template.updated_at,
    }


def _summary(template: Template) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "category": template.category,
        "document_type": template.document_type,
        "variant_type": template.variant_type,
        "variant_name": template.variant_name,
        "is_active": template.is_active,
        "version": template.version,
    }


def _get_template(session: Session, template_id: str, kind: str = "Template") -> Template:
    template = session.get(Template, template_id)
    if template is None:
        raise NotFoundError(kind, template_id)
    return template


def _validate_fields(data: dict[str, Any]) -> None:
    issues = [
        f"{field} cannot be null"
        for field in _NOT_NULL_FIELDS
        if field in data and data[field] is None
    ]
    for field, allowed in _ENUM_FIELDS.items():
        value = data.get(field)
        if value is not None and value not in allowed:
            issues.append(f"{field} must be one of {', '.join(allowed)}")
    quality = data.get("quality_score")
    if quality is not None and not 0 <= quality <= 100:
        issues.append("quality_score must be between 0 and 100")
    if issues:
        raise ValidationError(issues)


def _validate_documents(
    session: Session,
    parent_id: str | None,
    structure: dict[str, Any],
    design: dict[str, Any],
) -> None:
    """Check that the stored documents resolve to a complete template."""
    if parent_id:
        parent = resolve_in_session(session, parent_id)
        structure = merge_documents(parent["template_structure"], structure)
        design = merge_documents(parent["design_config"], design)
    ensure_valid_documents(structure, design)


def _check_parent_link(session: Session, template_id: str | None, parent_id: str) -> None:
    """Refuse a parent link that would loop or make the chain too deep.

    ``template_id`` is None for a template that is about to be inserted.
    """
    if template_id and would_create_cycle(session, template_id, parent_id):
        logger.warning("Rejected parent %s for template %s: cycle", parent_id, template_id)
        raise CycleError(
            f"Setting parent '{parent_id}' on '{template_id}' would create a cycle",
            [template_id, parent_id],
        )
    if exceeds_depth_limit(session, parent_id, template_id):
        logger.warning("Rejected parent %s for template %s: too deep", parent_id, template_id)
        raise ValidationError([f"Inheritance chain would exceed {MAX_INHERITANCE_DEPTH} levels"])


def _check_base(session: Session, base_template_id: str | None, is_variant: bool) -> None:
    if not base_template_id:
        return
    base = _get_template(session, base_template_id, "Base template")
    if is_variant and not base.is_base_template:
        raise ValidationError([f"Template '{base_template_id}' is not a base template"])


def _apply_template_updates(template: Template, data: dict[str, Any]) -> None:
    """Apply updates from data to a Template model."""
    for field in _TEMPLATE_FIELDS:
        if field in data:
            value = data[field]
            if isinstance(value, (dict, list)):
                value = copy.deepcopy(value)
            setattr(template, field, value)


def _insert_template(
    session: Session, data: dict[str, Any], created_by: str | None
) -> Template:
    missing = [field for field in ("name", "category", "document_type") if not data.get(field)]
    if missing:
        raise ValidationError([f"{field} is required" for field in missing])
    _validate_fields(data)

    parent_id = data.get("parent_template_id")
    if parent_id:
        _get_template(session, parent_id, "Parent template")
        _check_parent_link(session, None, parent_id)
    _check_base(session, data.get("base_template_id"), bool(data.get("is_variant")))
    _validate_documents(
        session,
        parent_id,
        data.get("template_structure") or {},
        data.get("design_config") or {},
    )

    template = Template(created_by=created_by, updated_by=created_by)
    _apply_template_updates(template, data)
    session.add(template)
    session.flush()

    append_snapshot(
        session,
        template,
        template.version,
        version_type="major",
        changelog_notes="Initial template version",
        created_by=created_by,
    )
    logger.info("Created template %s (%s)", template.id, template.name)
    return template


def create_template(data: TemplateData, created_by: str | None = None) -> dict[str, Any]:
    """Create a template and its initial version.

    Args:
        data: Template fields. Root templates need a complete
            ``template_structure`` and ``design_config``; templates with a
            ``parent_template_id`` store only their overrides.
        created_by: ID of the admin creating the template

    Returns:
        Dictionary with the created template

    Raises:
        NotFoundError: If the parent or base template does not exist.
        ValidationError: If the resolved documents are incomplete or invalid,
            or the parent chain is already ``MAX_INHERITANCE_DEPTH`` deep.
    """
    with get_session() as session:
        template = _insert_template(session, dict(data), created_by)
        return _template_to_dict(template)


def update_template(
    template_id: str, patch: TemplateData, updated_by: str | None = None
) -> dict[str, Any]:
    """Update a template.

    A version snapshot of the updated row is appended when the patch touches
    a significant field and supplies a ``version`` different from the current
    one.

    Raises:
        NotFoundError: If the template, new parent or base does not exist.
        CycleError: If the new parent would make the chain loop.
        ValidationError: If the resolved documents would become invalid or the
            chain would exceed ``MAX_INHERITANCE_DEPTH``.
    """
    with get_session() as session:
        template = _get_template(session, template_id)
        _validate_fields(dict(patch))

        parent_id = patch.get("parent_template_id", template.parent_template_id)
        if "parent_template_id" in patch and parent_id:
            _get_template(session, parent_id, "Parent template")
            _check_parent_link(session, template.id, parent_id)
        if "base_template_id" in patch:
            _check_base(
                session,
                patch["base_template_id"],
                bool(patch.get("is_variant", template.is_variant)),
            )

        if {"template_structure", "design_config", "parent_template_id"} & patch.keys():
            _validate_documents(
                session,
                parent_id,
                patch.get("template_structure", template.template_structure) or {},
                patch.get("design_config", template.design_config) or {},
            )

        previous_version = template.version
        _apply_template_updates(template, dict(patch))
        template.updated_by = updated_by
        session.flush()

        new_version = patch.get("version")
        touches_significant = any(field in patch for field in SIGNIFICANT_FIELDS)
        if touches_significant and new_version and new_version != previous_version:
            append_snapshot(
                session,
                template,
                new_version,
                version_type="minor",
                changelog_notes=f"Updated to version {new_version}",
                created_by=updated_by,
            )

        logger.info("Updated template %s", template_id)
        return _template_to_dict(template)


def _variant_dependents(session: Session, template_id: str, doomed: set[str]) -> list[Template]:
    """Templates outside a hard delete that inherit from, or vary, a deleted variant."""
    if not doomed:
        return []
    return (
        session.query(Template)
        .filter(
            Template.id.notin_(doomed | {template_id}),
            or_(
                Template.parent_template_id.in_(doomed),
                Template.base_template_id.in_(doomed),
            ),
        )
        .all()
    )


def delete_template(
    template_id: str,
    hard: bool = False,
    transfer_dependencies_to: str | None = None,
    delete_variants: bool = False,
) -> dict[str, Any]:
    """Soft- or hard-delete a template.

    Args:
        template_id: Template to delete
        hard: Remove the row and its version history instead of deactivating
        transfer_dependencies_to: Template that inherits children, variants
            and customizations of the deleted one
        delete_variants: Delete variants instead of transferring them. Their
            own children and variants move to ``transfer_dependencies_to``.

    Returns:
        Dictionary describing what was deleted and transferred

    Raises:
        NotFoundError: If the template or transfer target does not exist.
        DependencyError: If dependents exist and no way to handle them was given.
        ValidationError: If the transfer target is being deleted, or a moved
            child would end up too deep.
        CycleError: If a transferred child would become its own ancestor.
    """
    with get_session() as session:
        template = _get_template(session, template_id)

        if not hard:
            template.is_active = False
            logger.info("Deactivated template %s", template_id)
            return {"id": template_id, "hard": False}

        children = (
            session.query(Template).filter(Template.parent_template_id == template_id).all()
        )
        variants = session.query(Template).filter(Template.base_template_id == template_id).all()
        customizations = (
            session.query(func.count(TemplateCustomization.id))
            .filter(TemplateCustomization.template_id == template_id)
            .scalar()
        )

        has_dependents = bool(children or variants or customizations)
        if has_dependents and not transfer_dependencies_to and not delete_variants:
            logger.warning(
                "Blocked hard delete of %s: %d children, %d variants, %d customizations",
                template_id,
                len(children),
                len(variants),
                customizations,
            )
            raise DependencyError(
                f"Template '{template_id}' has dependents; transfer or delete them first",
                {
                    "children": len(children),
                    "variants": len(variants),
                    "customizations": customizations,
                },
            )

        target_id = transfer_dependencies_to
        if target_id:
            if target_id == template_id:
                raise ValidationError(["Cannot transfer dependencies to the deleted template"])
            _get_template(session, target_id, "Transfer target")

        doomed: set[str] = set()
        if delete_variants:
            doomed = {variant.id for variant in variants}
            if target_id in doomed:
                raise ValidationError(["Cannot transfer dependencies to a deleted variant"])
            children = [child for child in children if child.id not in doomed]
            dependents = _variant_dependents(session, template_id, doomed)
            if dependents and not target_id:
                logger.warning(
                    "Blocked hard delete of %s: variants have %d dependents",
                    template_id,
                    len(dependents),
                )
                raise DependencyError(
                    f"Variants of '{template_id}' have dependents; a transfer target is required",
                    {"variant_dependents": [dependent.id for dependent in dependents]},
                )
            for dependent in dependents:
                if dependent.parent_template_id in doomed:
                    children.append(dependent)
                if dependent.base_template_id in doomed:
                    dependent.base_template_id = target_id
        elif variants:
            if not target_id:
                raise DependencyError(
                    f"Template '{template_id}' has variants; transfer or delete them first",
                    {"variants": len(variants)},
                )
            for variant in variants:
                variant.base_template_id = target_id

        if children or customizations:
            if not target_id:
                raise DependencyError(
                    f"Template '{template_id}' has children or customizations; "
                    "a transfer target is required",
                    {"children": len(children), "customizations": customizations},
                )
            for child in children:
                _check_parent_link(session, child.id, target_id)
            for child in children:
                child.parent_template_id = target_id
            session.execute(
                update(TemplateCustomization)
                .where(TemplateCustomization.template_id == template_id)
                .values(template_id=target_id)
            )

        if doomed:
            # Unlink first: variants may point at each other.
            for variant in variants:
                variant.parent_template_id = None
                variant.base_template_id = None
            session.flush()
            for variant in variants:
                session.delete(variant)
        session.flush()

        session.query(TemplateVersion).filter(TemplateVersion.template_id == template_id).delete(
            synchronize_session=False
        )
        session.delete(template)
        session.flush()

        logger.info(
            "Hard-deleted template %s (transferred to %s, %d variants deleted)",
            template_id,
            target_id,
            len(doomed),
        )
        return {
            "id": template_id,
            "hard": True,
            "transferred_to": target_id,
            "children_transferred": len(children) if target_id else 0,
            "customizations_transferred": customizations if target_id else 0,
            "variants_deleted": len(doomed),
        }


def get_template(template_id: str) -> dict[str, Any]:
    with get_session() as session:
        return _template_to_dict(_get_template(session, template_id))


def get_template_details(template_id: str) -> dict[str, Any]:
    """Template with its version history, parent, base and children."""
    with get_session() as session:
        template = _get_template(session, template_id)
        versions = (
            session.query(TemplateVersion)
            .filter(TemplateVersion.template_id == template_id)
            .order_by(TemplateVersion.created_at.desc())
            .all()
        )
        children = (
            session.query(Template)
            .filter(Template.parent_template_id == template_id)
            .order_by(Template.name)
            .all()
        )
        parent = (
            session.get(Template, template.parent_template_id)
            if template.parent_template_id
            else None
        )
        base = (
            session.get(Template, template.base_template_id)
            if template.is_variant and template.base_template_id
            else None
        )
        return {
            "template": _template_to_dict(template),
            "versions": [version_to_dict(v) for v in versions],
            "parent": _summary(parent) if parent else None,
            "base": _summary(base) if base else None,
            "children": [_summary(child) for child in children],
        }


def _clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


def _tags_clause(tags: list[str]):
    # Tags are a JSON array of strings; match the quoted element in its text form.
    text = cast(Template.tags, String)
    return or_(*(text.like(f'%"{tag}"%') for tag in tags))


def list_templates(filters: TemplateFilters | None = None) -> dict[str, Any]:
    """Search templates for the admin catalogue.

    Args:
        filters: Optional filters, sorting (``sort_by``, ``sort_order``) and
            pagination (``limit``, ``offset``). ``include_variants`` attaches
            each base template's variants.

    Returns:
        Dictionary with ``templates`` and ``total_count`` (before pagination)
    """
    filters = filters or {}
    sort_by = filters.get("sort_by", "created")
    if sort_by not in _SORT_COLUMNS:
        raise ValidationError([f"sort_by must be one of {', '.join(_SORT_COLUMNS)}"])

    with get_session() as session:
        query = session.query(Template)

        for field in (
            "category",
            "document_type",
            "is_active",
            "is_draft",
            "review_status",
            "is_base_template",
            "is_variant",
            "base_template_id",
            "variant_type",
            "is_featured",
            "created_by",
        ):
            if filters.get(field) is not None:
                query = query.filter(getattr(Template, field) == filters[field])

        has_parent = filters.get("has_parent")
        if has_parent is True:
            query = query.filter(Template.parent_template_id.is_not(None))
        elif has_parent is False:
            query = query.filter(Template.parent_template_id.is_(None))

        for key, column in _MIN_FILTERS.items():
            if filters.get(key) is not None:
                query = query.filter(column >= filters[key])

        if filters.get("tags"):
            query = query.filter(_tags_clause(filters["tags"]))

        if filters.get("search"):
            pattern = f"%{filters['search']}%"
            query = query.filter(
                or_(
                    Template.name.ilike(pattern),
                    Template.description.ilike(pattern),
                    Template.search_keywords.ilike(pattern),
                )
            )

        if filters.get("created_from") is not None:
            query = query.filter(Template.created_at >= filters["created_from"])
        if filters.get("created_to") is not None:
            query = query.filter(Template.created_at <= filters["created_to"])

        total_count = query.count()

        column = _SORT_COLUMNS[sort_by]
        ordering = column.asc() if filters.get("sort_order") == "asc" else column.desc()
        templates = (
            query.order_by(ordering, Template.id)
            .offset(filters.get("offset") or 0)
            .limit(_clamp_limit(filters.get("limit")))
            .all()
        )

        results = [_template_to_dict(t) for t in templates]

        if filters.get("include_variants"):
            base_ids = [t["id"] for t in results if t["is_base_template"]]
            variants: dict[str, list[dict[str, Any]]] = {base_id: [] for base_id in base_ids}
            if base_ids:
                for variant in (
                    session.query(Template)
                    .filter(Template.base_template_id.in_(base_ids))
                    .order_by(Template.name)
                ):
                    variants[variant.base_template_id].append(_summary(variant))
            for result in results:
                if result["is_base_template"]:
                    result["variants"] = variants[result["id"]]

        return {"templates": results, "total_count": total_count}


def browse_templates(
    document_type: str | None = None,
    category: str | None = None,
    tags: list[str] | None = None,
    search: str | None = None,
    featured_only: bool = False,
    free_only: bool = False,
    limit: int | None = None,
    offset: int = 0,
) -> dict[str, Any]:
    """Public catalogue: active, public, non-draft templates."""
    with get_session() as session:
        query = session.query(Template).filter(
            Template.is_active.is_(True),
            Template.is_public.is_(True),
            Template.is_draft.is_(False),
        )
        if document_type:
            query = query.filter(Template.document_type == document_type)
        if category:
            query = query.filter(Template.category == category)
        if tags:
            query = query.filter(_tags_clause(tags))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Template.name.ilike(pattern), Template.description.ilike(pattern))
            )
        if featured_only:
            query = query.filter(Template.is_featured.is_(True))
        if free_only:
            query = query.filter(Template.is_premium.is_(False))

        total_count = query.count()
        templates = (
            query.order_by(
                Template.is_featured.desc(),
                Template.featured_order.asc(),
                Template.avg_rating.desc(),
                Template.usage_count.desc(),
                Template.id,
            )
            .offset(offset)
            .limit(_clamp_limit(limit))
            .all()
        )
        return {
            "templates": [
                {
                    **_summary(t),
                    "description": t.description,
                    "tags": list(t.tags or []),
                    "is_premium": t.is_premium,
                    "is_featured": t.is_featured,
                    "usage_count": t.usage_count,
                    "avg_rating": t.avg_rating,
                    "total_ratings": t.total_ratings,
                }
                for t in templates
            ],
            "total_count": total_count,
        }


def _fresh_copy_fields(source: Template) -> dict[str, Any]:
    return {
        "description": source.description,
        "category": source.category,
        "document_type": source.document_type,
        "component_code": source.component_code,
        "target_specializations": list(source.target_specializations or []),
        "target_industries": list(source.target_industries or []),
        "target_experience_level": source.target_experience_level,
        "tags": list(source.tags or []),
        "search_keywords": source.search_keywords,
        "is_premium": source.is_premium,
        "is_public": source.is_public,
        "is_draft": True,
        "review_status": "pending",
        "version": "1.0.0",
    }


def duplicate_template(
    template_id: str,
    name: str,
    overrides: dict[str, Any] | None = None,
    set_as_child: bool = False,
    created_by: str | None = None,
) -> dict[str, Any]:
    """Copy a template under a new name.

    ``overrides`` may carry ``design_config`` and ``template_structure``
    fragments (merged into the copy) plus plain fields such as
    ``description``, ``category`` or ``tags``. With ``set_as_child`` the
    copy becomes a child of the source and stores only the overrides;
    otherwise it stores the source's resolved documents and has no parent.
    The copy starts as a draft at version 1.0.0 with fresh metrics.
    """
    overrides = dict(overrides or {})
    design_override = overrides.pop("design_config", None) or {}
    structure_override = overrides.pop("template_structure", None) or {}

    with get_session() as session:
        source = _get_template(session, template_id)
        data = _fresh_copy_fields(source)
        data["name"] = name

        if set_as_child:
            data["parent_template_id"] = source.id
            data["template_structure"] = structure_override
            data["design_config"] = design_override
            data["sample_content"] = {}
        else:
            resolved = resolve_in_session(session, template_id)
            data["template_structure"] = merge_documents(
                resolved["template_structure"], structure_override
            )
            data["design_config"] = merge_documents(resolved["design_config"], design_override)
            data["sample_content"] = resolved["sample_content"]

        data.update({k: v for k, v in overrides.items() if k in _TEMPLATE_FIELDS})
        template = _insert_template(session, data, created_by)
        logger.info("Duplicated template %s as %s", template_id, template.id)
        return _template_to_dict(template)


def create_from_base(
    base_template_id: str,
    name: str,
    overrides: dict[str, Any] | None = None,
    created_by: str | None = None,
) -> dict[str, Any]:
    """Create a child of ``base_template_id`` that stores only ``overrides``.

    When the base is flagged ``is_base_template`` the new template is also
    recorded as one of its variants.
    """
    overrides = dict(overrides or {})
    with get_session() as session:
        base = _get_template(session, base_template_id, "Base template")
        data: dict[str, Any] = {
            "name": name,
            "description": base.description,
            "category": base.category,
            "document_type": base.document_type,
            "parent_template_id": base.id,
            "template_structure": {},
            "design_config": {},
            "tags": list(base.tags or []),
            "is_draft": True,
            "review_status": "pending",
        }
        if base.is_base_template:
            data["base_template_id"] = base.id
            data["is_variant"] = True
        data.update({k: v for k, v in overrides.items() if k in _TEMPLATE_FIELDS})
        data["parent_template_id"] = base.id

        template = _insert_template(session, data, created_by)
        return _template_to_dict(template)


def bulk_update_templates(
    template_ids: list[str],
    updates: TemplateData,
    create_versions: bool = False,
    updated_by: str | None = None,
) -> dict[str, Any]:
    """Apply the same field updates to many templates.

    Each template is updated in its own transaction; failures are reported
    per id and do not stop the batch.
    """
    unsupported = sorted(set(updates) - set(_BULK_FIELDS))
    if unsupported:
        raise ValidationError([f"Field not allowed in bulk update: {f}" for f in unsupported])
    _validate_fields(dict(updates))

    errors: list[str] = []
    success_count = 0
    for template_id in template_ids:
        try:
            with get_session() as session:
                template = _get_template(session, template_id)
                if create_versions and ("version" in updates or "category" in updates):
                    append_snapshot(
                        session,
                        template,
                        updates.get("version") or f"{template.version}-bulk-update",
                        version_type="minor",
                        changelog_notes="Snapshot before bulk update",
                        created_by=updated_by,
                    )
                _apply_template_updates(template, dict(updates))
                template.updated_by = updated_by
            success_count += 1
        except TemplateStudioError as exc:
            errors.append(f"Template {template_id}: {exc.message}")
        except SQLAlchemyError:
            logger.exception("Bulk update failed for template %s", template_id)
            errors.append(f"Template {template_id}: database error")

    return {"success": not errors, "success_count": success_count, "errors": errors}


def bulk_delete_templates(
    template_ids: list[str],
    hard: bool = False,
    transfer_dependencies_to: str | None = None,
) -> dict[str, Any]:
    """Delete many templates, reporting failures per id."""
    errors: list[str] = []
    success_count = 0
    for template_id in template_ids:
        try:
            delete_template(
                template_id,
                hard=hard,
                transfer_dependencies_to=transfer_dependencies_to,
            )
            success_count += 1
        except TemplateStudioError as exc:
            logger.warning("Bulk delete skipped template %s: %s", template_id, exc.message)
            errors.append(f"Template {template_id}: {exc.message}")
        except SQLAlchemyError:
            logger.exception("Bulk delete failed for template %s", template_id)
            errors.append(f"Template {template_id}: database error")

    return {"success": not errors, "success_count": success_count, "errors": errors}


def bulk_change_status(
    template_ids: list[str], status: str, review_notes: str | None = None
) -> dict[str, Any]:
    """Set the review status of many templates in one statement."""
    _validate_fields({"review_status": status})
    values: dict[str, Any] = {"review_status": status}
    if review_notes is not None:
        values["review_notes"] = review_notes
    with get_session() as session:
        result = session.execute(
            update(Template).where(Template.id.in_(template_ids)).values(**values)
        )
        return {"success": True, "updated": result.rowcount}


def bulk_toggle_featured(
    template_ids: list[str],
    featured: bool,
    featured_order: int | None = None,
    featured_until: datetime | None = None,
) -> dict[str, Any]:
    """Feature or unfeature many templates in one statement."""
    values: dict[str, Any] = {"is_featured": featured}
    if featured:
        values["featured_order"] = featured_order
        values["featured_until"] = featured_until
    else:
        values["featured_order"] = None
        values["featured_until"] = None
    with get_session() as session:
        result = session.execute(
            update(Template).where(Template.id.in_(template_ids)).values(**values)
        )
        return {"success": True, "updated": result.rowcount}
