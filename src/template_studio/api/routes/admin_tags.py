"""Admin tag routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from template_studio.api.dependencies import require_admin
from template_studio.api.schemas.tags import (
    AssignTagsRequest,
    TagCreateRequest,
    TagResponse,
    TagUpdateRequest,
)
from template_studio.services.tags import (
    assign_tags,
    create_tag,
    delete_tag,
    get_template_tags,
    list_tags,
    update_tag,
)

router = APIRouter(prefix="/admin", tags=["admin-tags"])

TagId = Annotated[str, Path(description="Tag ID")]
AdminId = Annotated[str, Depends(require_admin)]


@router.get("/tags", response_model=list[TagResponse])
def list_tags_endpoint(
    _admin: AdminId,
    category: str | None = None,
    is_system_tag: bool | None = None,
    search: str | None = None,
    parent_tag_id: str | None = None,
) -> list[TagResponse]:
    tags = list_tags(
        category=category,
        is_system_tag=is_system_tag,
        search=search,
        parent_tag_id=parent_tag_id,
    )
    return [TagResponse(**t) for t in tags]


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag_endpoint(data: TagCreateRequest, admin_id: AdminId) -> TagResponse:
    return TagResponse(**create_tag(data.model_dump(exclude_none=True), created_by=admin_id))


@router.patch("/tags/{tag_id}", response_model=TagResponse)
def update_tag_endpoint(tag_id: TagId, data: TagUpdateRequest, _admin: AdminId) -> TagResponse:
    return TagResponse(**update_tag(tag_id, data.model_dump(exclude_unset=True)))


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag_endpoint(tag_id: TagId, _admin: AdminId) -> None:
    delete_tag(tag_id)


@router.get("/templates/{template_id}/tags", response_model=list[TagResponse])
def get_template_tags_endpoint(
    template_id: Annotated[str, Path(description="Template ID")], _admin: AdminId
) -> list[TagResponse]:
    return [TagResponse(**t) for t in get_template_tags(template_id)]


@router.put("/templates/{template_id}/tags", response_model=list[TagResponse])
def assign_tags_endpoint(
    template_id: Annotated[str, Path(description="Template ID")],
    data: AssignTagsRequest,
    admin_id: AdminId,
) -> list[TagResponse]:
    """Replace the tags attached to a template."""
    return [TagResponse(**t) for t in assign_tags(template_id, data.tag_ids, created_by=admin_id)]
