"""Admin version ledger routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from template_studio.api.dependencies import require_admin
from template_studio.api.schemas.common import DEFAULT_LIMIT, MAX_LIMIT
from template_studio.api.schemas.versions import (
    PublishRequest,
    RevertRequest,
    RevertResponse,
    VersionCreateRequest,
    VersionResponse,
)
from template_studio.services.version_ledger import (
    get_version,
    list_versions,
    publish_version,
    revert_to_version,
    snapshot_template,
)

router = APIRouter(prefix="/admin", tags=["admin-versions"])

TemplateId = Annotated[str, Path(description="Template ID")]
VersionId = Annotated[str, Path(description="Version ID")]
AdminId = Annotated[str, Depends(require_admin)]


@router.get("/templates/{template_id}/versions", response_model=list[VersionResponse])
def list_versions_endpoint(
    template_id: TemplateId,
    _admin: AdminId,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[VersionResponse]:
    """List versions of a template, newest first."""
    return [VersionResponse(**v) for v in list_versions(template_id, limit, offset)]


@router.post(
    "/templates/{template_id}/versions",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_version_endpoint(
    template_id: TemplateId, data: VersionCreateRequest, admin_id: AdminId
) -> VersionResponse:
    """Snapshot the current state of a template as a new version."""
    result = snapshot_template(template_id, created_by=admin_id, **data.model_dump())
    return VersionResponse(**result)


@router.post("/templates/{template_id}/revert", response_model=RevertResponse)
def revert_endpoint(
    template_id: TemplateId, data: RevertRequest, admin_id: AdminId
) -> RevertResponse:
    """Restore a template's content from one of its versions."""
    result = revert_to_version(
        template_id,
        data.version_id,
        create_backup=data.create_backup,
        updated_by=admin_id,
    )
    return RevertResponse(**result)


@router.get("/versions/{version_id}", response_model=VersionResponse)
def get_version_endpoint(version_id: VersionId, _admin: AdminId) -> VersionResponse:
    return VersionResponse(**get_version(version_id))


@router.post("/versions/{version_id}/publish", response_model=VersionResponse)
def publish_version_endpoint(
    version_id: VersionId, _admin: AdminId, data: PublishRequest | None = None
) -> VersionResponse:
    """Publish a version, unpublishing its siblings by default."""
    unpublish_others = data.unpublish_others if data else True
    return VersionResponse(**publish_version(version_id, unpublish_others=unpublish_others))
