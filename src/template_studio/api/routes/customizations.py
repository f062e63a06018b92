"""Customization routes for the API.

Customizations are private to their owner unless shared; every route acts
on behalf of the ``X-User-Id`` caller.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from template_studio.api.dependencies import get_current_user_id
from template_studio.api.schemas.common import DEFAULT_LIMIT, MAX_LIMIT
from template_studio.api.schemas.customizations import (
    CustomizationResponse,
    CustomizationSaveRequest,
    ShareRequest,
)
from template_studio.api.schemas.templates import ResolvedTemplateResponse
from template_studio.services.customization import (
    delete_customization,
    get_customization,
    get_shared_customization,
    list_customizations,
    render_effective_document,
    save_customization,
    share_customization,
)

router = APIRouter(prefix="/customizations", tags=["customizations"])

CustomizationId = Annotated[str, Path(description="Customization ID")]
UserId = Annotated[str, Depends(get_current_user_id)]


@router.get("", response_model=list[CustomizationResponse])
def list_customizations_endpoint(
    user_id: UserId,
    template_id: str | None = None,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[CustomizationResponse]:
    """List the caller's customizations, most recently used first."""
    results = list_customizations(user_id, template_id=template_id, limit=limit, offset=offset)
    return [CustomizationResponse(**c) for c in results]


@router.post("", response_model=CustomizationResponse)
def save_customization_endpoint(
    data: CustomizationSaveRequest, user_id: UserId
) -> CustomizationResponse:
    """Create a customization, or update one the caller owns."""
    result = save_customization(
        user_id,
        data.template_id,
        data.customizations,
        customization_id=data.customization_id,
        custom_name=data.custom_name,
        description=data.description,
        is_shared=data.is_shared,
    )
    return CustomizationResponse(**result)


@router.get("/shared/{share_token}", response_model=CustomizationResponse)
def get_shared_customization_endpoint(
    share_token: Annotated[str, Path(description="Share token")],
) -> CustomizationResponse:
    return CustomizationResponse(**get_shared_customization(share_token))


@router.get("/{customization_id}", response_model=CustomizationResponse)
def get_customization_endpoint(
    customization_id: CustomizationId, user_id: UserId
) -> CustomizationResponse:
    return CustomizationResponse(**get_customization(user_id, customization_id))


@router.delete("/{customization_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customization_endpoint(customization_id: CustomizationId, user_id: UserId) -> None:
    delete_customization(user_id, customization_id)


@router.post("/{customization_id}/share", response_model=CustomizationResponse)
def share_customization_endpoint(
    customization_id: CustomizationId, data: ShareRequest, user_id: UserId
) -> CustomizationResponse:
    """Grant other users access to a customization."""
    grants = [grant.model_dump() for grant in data.grants]
    return CustomizationResponse(**share_customization(user_id, customization_id, grants))


@router.get("/{customization_id}/document", response_model=ResolvedTemplateResponse)
def effective_document_endpoint(
    customization_id: CustomizationId, user_id: UserId, template_id: str
) -> ResolvedTemplateResponse:
    """Render the template with this customization applied."""
    return ResolvedTemplateResponse(
        **render_effective_document(user_id, template_id, customization_id)
    )
