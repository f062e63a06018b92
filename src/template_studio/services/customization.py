"""Customization overlay service.

A customization is a user's sparse patch over a resolved template. The
patch is applied on read; the template row is never modified.
"""

from __future__ import annotations

import copy
import logging
import secrets
from datetime import UTC, datetime
from typing import Any, TypedDict

from sqlalchemy import update
from sqlalchemy.orm import Session

from template_studio.constants import DEFAULT_LIMIT
from template_studio.data.db import get_session
from template_studio.data.models import Template, TemplateCustomization, User
from template_studio.errors import ForbiddenError, MismatchError, NotFoundError, ValidationError
from template_studio.services.inheritance import merge_documents, resolve_in_session
from template_studio.services.validation import normalize_patch

logger = logging.getLogger(__name__)

__all__ = [
    "ShareGrant",
    "apply_customization",
    "build_effective_document",
    "delete_customization",
    "get_customization",
    "get_shared_customization",
    "list_customizations",
    "render_effective_document",
    "save_customization",
    "share_customization",
]

SHARE_PERMISSIONS = ("view", "edit", "clone")

# Patch dimension -> (resolved document, key inside it)
_DIMENSION_TARGETS = {
    "colorChanges": ("design_config", "colors"),
    "typographyChanges": ("design_config", "typography"),
    "spacingChanges": ("design_config", "spacing"),
    "borderChanges": ("design_config", "borders"),
    "effectChanges": ("design_config", "effects"),
    "layoutChanges": ("template_structure", "layout"),
}


class ShareGrant(TypedDict):
    user_id: str
    permissions: list[str]


def _apply_section_changes(
    sections: list[dict[str, Any]], changes: dict[str, Any]
) -> list[dict[str, Any]]:
    removed = set(changes.get("sectionsRemoved") or [])
    result = [copy.deepcopy(s) for s in sections if s.get("id") not in removed]

    existing = {s.get("id") for s in result}
    for added in changes.get("sectionsAdded") or []:
        if added["id"] in existing:
            continue
        result.append({**added, "type": "custom", "isRequired": False})
        existing.add(added["id"])

    order_changes = changes.get("orderChanges") or {}
    settings = changes.get("sectionSettings") or {}
    for section in result:
        if section.get("id") in order_changes:
            section["order"] = order_changes[section["id"]]
        for key, value in (settings.get(section.get("id")) or {}).items():
            if value is not None:
                section[key] = value

    result.sort(key=lambda s: s.get("order", 0))
    return result


def apply_customization(resolved: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Overlay a customization patch on a resolved template document.

    Args:
        resolved: Output of the inheritance resolver
        patch: Customization patch (camelCase dimensions)

    Returns:
        A new document; dimensions absent from the patch are inherited
        unchanged. Neither argument is modified.

    Raises:
        ValidationError: If the patch has unknown keys or wrong types.
    """
    patch = normalize_patch(patch)
    document = copy.deepcopy(resolved)

    for dimension, (target, key) in _DIMENSION_TARGETS.items():
        changes = patch.get(dimension)
        if changes:
            container = document.setdefault(target, {})
            container[key] = merge_documents(container.get(key) or {}, changes)

    section_changes = patch.get("sectionChanges")
    if section_changes:
        structure = document.setdefault("template_structure", {})
        structure["sections"] = _apply_section_changes(
            structure.get("sections") or [], section_changes
        )

    if patch.get("customContent"):
        document["sample_content"] = merge_documents(
            document.get("sample_content") or {}, patch["customContent"]
        )
    if patch.get("customCSS") is not None:
        document["custom_css"] = patch["customCSS"]

    return document


def _customization_to_dict(customization: TemplateCustomization) -> dict[str, Any]:
    return {
        "id": customization.id,
        "user_id": customization.user_id,
        "template_id": customization.template_id,
        "custom_name": customization.custom_name,
        "description": customization.description,
        "customizations": customization.customizations,
        "times_used": customization.times_used,
        "last_used_at": customization.last_used_at,
        "is_shared": customization.is_shared,
        "share_token": customization.share_token,
        "shared_with": list(customization.shared_with or []),
        "base_template_version": customization.base_template_version,
        "created_at": customization.created_at,
        "updated_at": customization.updated_at,
    }


def _get_customization(session: Session, customization_id: str) -> TemplateCustomization:
    customization = session.get(TemplateCustomization, customization_id)
    if customization is None:
        raise NotFoundError("Customization", customization_id)
    return customization


def _get_owned(session: Session, user_id: str, customization_id: str) -> TemplateCustomization:
    customization = _get_customization(session, customization_id)
    if customization.user_id != user_id:
        logger.warning("User %s denied access to customization %s", user_id, customization_id)
        raise ForbiddenError(f"Customization '{customization_id}' belongs to another user")
    return customization


def _can_view(customization: TemplateCustomization, user_id: str) -> bool:
    if customization.user_id == user_id:
        return True
    return any(
        grant.get("userId") == user_id and "view" in (grant.get("permissions") or [])
        for grant in customization.shared_with or []
    )


def save_customization(
    user_id: str,
    template_id: str,
    patch: dict[str, Any],
    customization_id: str | None = None,
    custom_name: str | None = None,
    description: str | None = None,
    is_shared: bool | None = None,
) -> dict[str, Any]:
    """Create a customization, or update one the user owns.

    Args:
        user_id: Owner of the customization
        template_id: Template being customized; must exist and be active
        patch: Customization patch to store
        customization_id: Existing customization to update (insert when omitted)
        custom_name: Optional display name
        description: Optional description
        is_shared: Optional sharing flag

    Returns:
        Dictionary with the saved customization

    Raises:
        NotFoundError: If the user, template or customization does not exist.
        ForbiddenError: If the customization belongs to another user.
        MismatchError: If the customization belongs to another template.
        ValidationError: If the patch is malformed.
    """
    normalized = normalize_patch(patch)

    with get_session() as session:
        if session.get(User, user_id) is None:
            raise NotFoundError("User", user_id)
        template = session.get(Template, template_id)
        if template is None or not template.is_active:
            raise NotFoundError("Template", template_id)

        if customization_id:
            customization = _get_owned(session, user_id, customization_id)
            if customization.template_id != template_id:
                raise MismatchError(
                    f"Customization '{customization_id}' belongs to another template",
                    {"template_id": customization.template_id},
                )
            customization.customizations = normalized
        else:
            customization = TemplateCustomization(
                user_id=user_id,
                template_id=template_id,
                customizations=normalized,
                base_template_version=template.version,
            )
            session.add(customization)

        if custom_name is not None:
            customization.custom_name = custom_name
        if description is not None:
            customization.description = description
        if is_shared is not None:
            customization.is_shared = is_shared
        session.flush()

        logger.info("Saved customization %s for user %s", customization.id, user_id)
        return _customization_to_dict(customization)


def get_customization(user_id: str, customization_id: str) -> dict[str, Any]:
    """Get a customization the user owns or was granted view access to."""
    with get_session() as session:
        customization = _get_customization(session, customization_id)
        if not _can_view(customization, user_id):
            raise ForbiddenError(f"Customization '{customization_id}' is not shared with you")
        return _customization_to_dict(customization)


def list_customizations(
    user_id: str,
    template_id: str | None = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """A user's customizations, most recently used first."""
    with get_session() as session:
        query = session.query(TemplateCustomization).filter(
            TemplateCustomization.user_id == user_id
        )
        if template_id:
            query = query.filter(TemplateCustomization.template_id == template_id)
        customizations = (
            query.order_by(
                TemplateCustomization.last_used_at.desc(),
                TemplateCustomization.created_at.desc(),
            )
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [_customization_to_dict(c) for c in customizations]


def delete_customization(user_id: str, customization_id: str) -> None:
    with get_session() as session:
        customization = _get_owned(session, user_id, customization_id)
        session.delete(customization)
        logger.info("Deleted customization %s", customization_id)


def share_customization(
    user_id: str, customization_id: str, grants: list[ShareGrant]
) -> dict[str, Any]:
    """Share a customization with other users.

    Replaces the existing grants and creates a share token on first share.
    """
    issues = [
        f"Unknown permission '{permission}'"
        for grant in grants
        for permission in grant["permissions"]
        if permission not in SHARE_PERMISSIONS
    ]
    if issues:
        raise ValidationError(issues)

    with get_session() as session:
        customization = _get_owned(session, user_id, customization_id)
        now = datetime.now(UTC).isoformat()
        customization.shared_with = [
            {"userId": grant["user_id"], "permissions": list(grant["permissions"]), "sharedAt": now}
            for grant in grants
        ]
        customization.is_shared = True
        if not customization.share_token:
            customization.share_token = secrets.token_urlsafe(24)
        session.flush()
        return _customization_to_dict(customization)


def get_shared_customization(share_token: str) -> dict[str, Any]:
    with get_session() as session:
        customization = (
            session.query(TemplateCustomization)
            .filter(
                TemplateCustomization.share_token == share_token,
                TemplateCustomization.is_shared.is_(True),
            )
            .first()
        )
        if customization is None:
            raise NotFoundError("Shared customization", share_token)
        return _customization_to_dict(customization)


def build_effective_document(
    session: Session,
    user_id: str,
    template_id: str,
    customization_id: str | None = None,
) -> dict[str, Any]:
    """Resolve a template and overlay a customization inside an open session.

    Using a customization bumps its ``times_used`` and ``last_used_at`` in a
    single UPDATE.
    """
    document = resolve_in_session(session, template_id)
    if not customization_id:
        return document

    customization = _get_customization(session, customization_id)
    if customization.template_id != template_id:
        raise MismatchError(
            f"Customization '{customization_id}' belongs to another template",
            {"template_id": customization.template_id},
        )
    if not _can_view(customization, user_id):
        raise ForbiddenError(f"Customization '{customization_id}' is not shared with you")

    document = apply_customization(document, customization.customizations)
    document["customization_id"] = customization.id
    session.execute(
        update(TemplateCustomization)
        .where(TemplateCustomization.id == customization.id)
        .values(
            times_used=TemplateCustomization.times_used + 1,
            last_used_at=datetime.now(UTC),
        )
    )
    return document


def render_effective_document(
    user_id: str, template_id: str, customization_id: str | None = None
) -> dict[str, Any]:
    """The document a user actually sees: resolved template plus their customization."""
    with get_session() as session:
        return build_effective_document(session, user_id, template_id, customization_id)
