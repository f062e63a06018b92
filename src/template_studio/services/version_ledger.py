"""Version ledger service.

Versions are append-only snapshots of a template's content. The only fields
that change after a version is written are ``is_published`` and
``published_at``.
"""

from __future__ import annotations

import copy
import logging
import time
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from template_studio.constants import DEFAULT_LIMIT, VERSION_TYPES
from template_studio.data.db import get_session
from template_studio.data.models import Template, TemplateVersion
from template_studio.errors import MismatchError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "append_snapshot",
    "build_snapshot",
    "get_version",
    "list_versions",
    "publish_version",
    "revert_to_version",
    "snapshot_template",
    "version_to_dict",
]


def build_snapshot(template: Template) -> dict[str, Any]:
    """Capture the content fields of a template as a snapshot document."""
    return {
        "name": template.name,
        "description": template.description,
        "templateStructure": copy.deepcopy(template.template_structure),
        "designConfig": copy.deepcopy(template.design_config),
        "sampleContent": copy.deepcopy(template.sample_content),
        "componentCode": template.component_code,
        "tags": list(template.tags or []),
    }


def version_to_dict(version: TemplateVersion) -> dict[str, Any]:
    """Convert a TemplateVersion model to a dictionary."""
    return {
        "id": version.id,
        "template_id": version.template_id,
        "version_number": version.version_number,
        "version_type": version.version_type,
        "snapshot": version.snapshot,
        "changelog_notes": version.changelog_notes,
        "is_breaking": version.is_breaking,
        "backward_compatible": version.backward_compatible,
        "deprecated_features": list(version.deprecated_features or []),
        "migration_notes": version.migration_notes,
        "is_published": version.is_published,
        "published_at": version.published_at,
        "created_by": version.created_by,
        "created_at": version.created_at,
    }


def append_snapshot(
    session: Session,
    template: Template,
    version_number: str,
    version_type: str = "minor",
    changelog_notes: str | None = None,
    created_by: str | None = None,
    is_breaking: bool = False,
    backward_compatible: bool = True,
    deprecated_features: list[str] | None = None,
    migration_notes: str | None = None,
) -> TemplateVersion:
    """Add a version row for ``template`` to the open session."""
    if version_type not in VERSION_TYPES:
        raise ValidationError([f"versionType must be one of {', '.join(VERSION_TYPES)}"])

    version = TemplateVersion(
        template_id=template.id,
        version_number=version_number,
        version_type=version_type,
        snapshot=build_snapshot(template),
        changelog_notes=changelog_notes,
        is_breaking=is_breaking,
        backward_compatible=backward_compatible,
        deprecated_features=list(deprecated_features or []),
        migration_notes=migration_notes,
        created_by=created_by,
    )
    session.add(version)
    session.flush()
    return version


def _get_template(session: Session, template_id: str) -> Template:
    template = session.get(Template, template_id)
    if template is None:
        raise NotFoundError("Template", template_id)
    return template


def _get_version(session: Session, version_id: str) -> TemplateVersion:
    version = session.get(TemplateVersion, version_id)
    if version is None:
        raise NotFoundError("Version", version_id)
    return version


def snapshot_template(
    template_id: str,
    version_number: str,
    version_type: str = "minor",
    changelog_notes: str | None = None,
    is_breaking: bool = False,
    backward_compatible: bool = True,
    deprecated_features: list[str] | None = None,
    migration_notes: str | None = None,
    created_by: str | None = None,
) -> dict[str, Any]:
    """Append a snapshot of the template's current state.

    The template row is not modified; callers that want ``version`` bumped
    do so through ``update_template``.

    Raises:
        NotFoundError: If the template does not exist.
    """
    with get_session() as session:
        template = _get_template(session, template_id)
        version = append_snapshot(
            session,
            template,
            version_number,
            version_type=version_type,
            changelog_notes=changelog_notes,
            created_by=created_by,
            is_breaking=is_breaking,
            backward_compatible=backward_compatible,
            deprecated_features=deprecated_features,
            migration_notes=migration_notes,
        )
        logger.info("Recorded version %s of template %s", version_number, template_id)
        return version_to_dict(version)


def list_versions(
    template_id: str, limit: int = DEFAULT_LIMIT, offset: int = 0
) -> list[dict[str, Any]]:
    """Versions of a template, newest first."""
    with get_session() as session:
        _get_template(session, template_id)
        versions = (
            session.query(TemplateVersion)
            .filter(TemplateVersion.template_id == template_id)
            .order_by(TemplateVersion.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [version_to_dict(v) for v in versions]


def get_version(version_id: str) -> dict[str, Any]:
    with get_session() as session:
        return version_to_dict(_get_version(session, version_id))


def publish_version(version_id: str, unpublish_others: bool = True) -> dict[str, Any]:
    """Mark a version as published.

    With ``unpublish_others`` every sibling version is unpublished in the
    same transaction, so exactly one version of the template is published
    afterwards.

    Raises:
        NotFoundError: If the version does not exist.
    """
    with get_session() as session:
        version = _get_version(session, version_id)
        # Serialize concurrent publishers of the same template.
        session.query(Template).filter(Template.id == version.template_id).with_for_update().one()

        if unpublish_others:
            session.execute(
                update(TemplateVersion)
                .where(
                    TemplateVersion.template_id == version.template_id,
                    TemplateVersion.id != version.id,
                )
                .values(is_published=False, published_at=None)
            )

        version.is_published = True
        version.published_at = datetime.now(UTC)
        session.flush()
        logger.info(
            "Published version %s of template %s", version.version_number, version.template_id
        )
        return version_to_dict(version)


def revert_to_version(
    template_id: str,
    version_id: str,
    create_backup: bool = True,
    updated_by: str | None = None,
) -> dict[str, Any]:
    """Overwrite a template's content with an earlier snapshot.

    Args:
        template_id: Template to revert
        version_id: Version whose snapshot is restored
        create_backup: Append a ``patch`` snapshot of the current state first
        updated_by: User performing the revert

    Returns:
        Dictionary with the reverted ``template_id``, the restored
        ``version`` and the ``backup_version_id`` (``None`` without backup).

    Raises:
        NotFoundError: If the template or the version does not exist.
        MismatchError: If the version belongs to a different template.
    """
    with get_session() as session:
        template = _get_template(session, template_id)
        version = _get_version(session, version_id)
        if version.template_id != template.id:
            raise MismatchError(
                f"Version '{version_id}' does not belong to template '{template_id}'",
                {"template_id": template_id, "version_template_id": version.template_id},
            )

        backup_id = None
        if create_backup:
            backup = append_snapshot(
                session,
                template,
                f"{template.version}-backup-{int(time.time() * 1000)}",
                version_type="patch",
                changelog_notes="Backup before reverting to older version",
                created_by=updated_by,
            )
            backup_id = backup.id

        snapshot = version.snapshot
        template.name = snapshot["name"]
        template.description = snapshot.get("description")
        template.template_structure = copy.deepcopy(snapshot.get("templateStructure") or {})
        template.design_config = copy.deepcopy(snapshot.get("designConfig") or {})
        template.sample_content = copy.deepcopy(snapshot.get("sampleContent") or {})
        template.component_code = snapshot.get("componentCode")
        template.tags = list(snapshot.get("tags") or [])
        template.version = version.version_number
        template.updated_by = updated_by
        session.flush()

        logger.info("Reverted template %s to version %s", template_id, version.version_number)
        return {
            "template_id": template.id,
            "version": template.version,
            "backup_version_id": backup_id,
        }
