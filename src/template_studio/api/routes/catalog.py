"""Public template catalogue routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from template_studio.api.dependencies import get_current_user_id, get_optional_user_id
from template_studio.api.schemas.common import DEFAULT_LIMIT, MAX_LIMIT, PaginationMeta
from template_studio.api.schemas.templates import (
    CatalogResponse,
    CatalogTemplate,
    Category,
    DocumentType,
    ResolvedTemplateResponse,
)
from template_studio.api.schemas.usage import (
    RateRequest,
    RatingResponse,
    UseTemplateRequest,
    UseTemplateResponse,
)
from template_studio.errors import NotFoundError
from template_studio.services.customization import render_effective_document
from template_studio.services.template_store import browse_templates, get_template
from template_studio.services.usage import rate_template, record_event, use_template

router = APIRouter(prefix="/templates", tags=["templates"])

TemplateId = Annotated[str, Path(description="Template ID")]


@router.get("", response_model=CatalogResponse)
def browse_templates_endpoint(
    document_type: DocumentType | None = None,
    category: Category | None = None,
    tags: Annotated[list[str] | None, Query(description="Match any of these tags")] = None,
    search: str | None = None,
    featured_only: bool = False,
    free_only: bool = False,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> CatalogResponse:
    """Browse active public templates, featured first."""
    result = browse_templates(
        document_type=document_type,
        category=category,
        tags=tags,
        search=search,
        featured_only=featured_only,
        free_only=free_only,
        limit=limit,
        offset=offset,
    )
    total = result["total_count"]
    return CatalogResponse(
        templates=[CatalogTemplate(**t) for t in result["templates"]],
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(result["templates"]) < total,
        ),
    )


@router.get("/{template_id}", response_model=ResolvedTemplateResponse)
def get_template_endpoint(
    template_id: TemplateId,
    user_id: Annotated[str | None, Depends(get_optional_user_id)],
    customization_id: str | None = None,
) -> ResolvedTemplateResponse:
    """Get the effective document of a public template.

    Identified callers may overlay one of their customizations, and the view
    is recorded as a ``preview`` event.
    """
    template = get_template(template_id)
    if not template["is_active"] or not template["is_public"]:
        raise NotFoundError("Template", template_id)

    document = render_effective_document(user_id or "", template_id, customization_id)
    if user_id:
        record_event(
            {
                "user_id": user_id,
                "template_id": template_id,
                "customization_id": customization_id,
                "action_type": "preview",
            }
        )
    return ResolvedTemplateResponse(**document)


@router.post("/{template_id}/use", response_model=UseTemplateResponse)
def use_template_endpoint(
    template_id: TemplateId,
    user_id: Annotated[str, Depends(get_current_user_id)],
    data: UseTemplateRequest | None = None,
) -> UseTemplateResponse:
    """Start a document from a template, optionally with a saved customization."""
    customization_id = data.customization_id if data else None
    return UseTemplateResponse(**use_template(user_id, template_id, customization_id))


@router.post("/{template_id}/rate", response_model=RatingResponse)
def rate_template_endpoint(
    template_id: TemplateId,
    data: RateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> RatingResponse:
    return RatingResponse(**rate_template(user_id, template_id, data.rating, data.feedback))
