"""Admin collection routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from template_studio.api.dependencies import require_admin
from template_studio.api.schemas.collections import (
    CollectionCreateRequest,
    CollectionResponse,
    CollectionTemplatesRequest,
    CollectionUpdateRequest,
)
from template_studio.services.collections import (
    add_templates,
    create_collection,
    delete_collection,
    get_collection,
    get_template_collections,
    list_collections,
    remove_templates,
    update_collection,
)

router = APIRouter(prefix="/admin", tags=["admin-collections"])

CollectionId = Annotated[str, Path(description="Collection ID")]
AdminId = Annotated[str, Depends(require_admin)]


@router.get("/collections", response_model=list[CollectionResponse])
def list_collections_endpoint(
    _admin: AdminId,
    is_active: bool | None = None,
    is_featured: bool | None = None,
    parent_collection_id: str | None = None,
) -> list[CollectionResponse]:
    """List collections with their template counts."""
    collections = list_collections(
        is_active=is_active,
        is_featured=is_featured,
        parent_collection_id=parent_collection_id,
    )
    return [CollectionResponse(**c) for c in collections]


@router.post(
    "/collections", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED
)
def create_collection_endpoint(
    data: CollectionCreateRequest, admin_id: AdminId
) -> CollectionResponse:
    result = create_collection(data.model_dump(exclude_none=True), created_by=admin_id)
    return CollectionResponse(**result)


@router.get("/collections/{collection_id}", response_model=CollectionResponse)
def get_collection_endpoint(collection_id: CollectionId, _admin: AdminId) -> CollectionResponse:
    return CollectionResponse(**get_collection(collection_id))


@router.patch("/collections/{collection_id}", response_model=CollectionResponse)
def update_collection_endpoint(
    collection_id: CollectionId, data: CollectionUpdateRequest, admin_id: AdminId
) -> CollectionResponse:
    result = update_collection(
        collection_id, data.model_dump(exclude_unset=True), updated_by=admin_id
    )
    return CollectionResponse(**result)


@router.delete("/collections/{collection_id}")
def delete_collection_endpoint(
    collection_id: CollectionId, _admin: AdminId, move_templates_to: str | None = None
) -> dict:
    """Delete a collection, optionally moving its templates elsewhere."""
    return delete_collection(collection_id, move_templates_to=move_templates_to)


@router.post("/collections/{collection_id}/templates")
def add_templates_endpoint(
    collection_id: CollectionId, data: CollectionTemplatesRequest, admin_id: AdminId
) -> dict:
    return add_templates(
        collection_id,
        data.template_ids,
        start_order=data.start_order,
        added_reason=data.added_reason,
        added_by=admin_id,
    )


@router.delete("/collections/{collection_id}/templates")
def remove_templates_endpoint(
    collection_id: CollectionId,
    template_ids: Annotated[list[str], Query(description="Templates to remove")],
    _admin: AdminId,
) -> dict:
    return remove_templates(collection_id, template_ids)


@router.get("/templates/{template_id}/collections", response_model=list[CollectionResponse])
def get_template_collections_endpoint(
    template_id: Annotated[str, Path(description="Template ID")], _admin: AdminId
) -> list[CollectionResponse]:
    return [CollectionResponse(**c) for c in get_template_collections(template_id)]
