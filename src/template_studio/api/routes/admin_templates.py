"""Admin template routes for the API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from template_studio.api.dependencies import require_admin
from template_studio.api.schemas.common import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    BulkCountResult,
    BulkResult,
    PaginationMeta,
)
from template_studio.api.schemas.templates import (
    BulkDeleteRequest,
    BulkFeatureRequest,
    BulkStatusRequest,
    BulkUpdateRequest,
    Category,
    CreateFromBaseRequest,
    DocumentType,
    DuplicateTemplateRequest,
    ResolvedTemplateResponse,
    ReviewStatus,
    SortField,
    StructureReportResponse,
    TemplateCreateRequest,
    TemplateDeleteResponse,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdateRequest,
    ValidateStructureRequest,
    VariantType,
)
from template_studio.services.inheritance import resolve_template
from template_studio.services.template_store import (
    bulk_change_status,
    bulk_delete_templates,
    bulk_toggle_featured,
    bulk_update_templates,
    create_from_base,
    create_template,
    delete_template,
    duplicate_template,
    get_template_details,
    list_templates,
    update_template,
)
from template_studio.services.validation import validate_structure

router = APIRouter(prefix="/admin/templates", tags=["admin-templates"])

TemplateId = Annotated[str, Path(description="Template ID")]
AdminId = Annotated[str, Depends(require_admin)]


@router.get("", response_model=TemplateListResponse)
def list_templates_endpoint(
    _admin: AdminId,
    category: Category | None = None,
    document_type: DocumentType | None = None,
    is_active: bool | None = None,
    is_draft: bool | None = None,
    review_status: ReviewStatus | None = None,
    has_parent: bool | None = None,
    is_base_template: bool | None = None,
    is_variant: bool | None = None,
    base_template_id: str | None = None,
    variant_type: VariantType | None = None,
    is_featured: bool | None = None,
    quality_score_min: Annotated[int | None, Query(ge=0, le=100)] = None,
    usage_count_min: Annotated[int | None, Query(ge=0)] = None,
    avg_rating_min: Annotated[float | None, Query(ge=0, le=5)] = None,
    completion_rate_min: Annotated[float | None, Query(ge=0, le=1)] = None,
    export_rate_min: Annotated[float | None, Query(ge=0, le=1)] = None,
    tags: Annotated[list[str] | None, Query(description="Match any of these tags")] = None,
    search: str | None = None,
    created_by: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    sort_by: SortField = "created",
    sort_order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
    include_variants: bool = False,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> TemplateListResponse:
    """Search templates with filters, sorting and pagination."""
    filters = {
        key: value
        for key, value in {
            "category": category,
            "document_type": document_type,
            "is_active": is_active,
            "is_draft": is_draft,
            "review_status": review_status,
            "has_parent": has_parent,
            "is_base_template": is_base_template,
            "is_variant": is_variant,
            "base_template_id": base_template_id,
            "variant_type": variant_type,
            "is_featured": is_featured,
            "quality_score_min": quality_score_min,
            "usage_count_min": usage_count_min,
            "avg_rating_min": avg_rating_min,
            "completion_rate_min": completion_rate_min,
            "export_rate_min": export_rate_min,
            "tags": tags,
            "search": search,
            "created_by": created_by,
            "created_from": created_from,
            "created_to": created_to,
        }.items()
        if value is not None
    }
    result = list_templates(
        {
            **filters,
            "sort_by": sort_by,
            "sort_order": sort_order,
            "include_variants": include_variants,
            "limit": limit,
            "offset": offset,
        }
    )
    total = result["total_count"]
    return TemplateListResponse(
        templates=[TemplateResponse(**t) for t in result["templates"]],
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(result["templates"]) < total,
        ),
    )


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template_endpoint(data: TemplateCreateRequest, admin_id: AdminId) -> TemplateResponse:
    """Create a template together with its initial version."""
    result = create_template(data.model_dump(exclude_none=True), created_by=admin_id)
    return TemplateResponse(**result)


@router.post("/validate-structure", response_model=StructureReportResponse)
def validate_structure_endpoint(
    data: ValidateStructureRequest, _admin: AdminId
) -> StructureReportResponse:
    """Check a structure document without saving anything."""
    report = validate_structure(data.template_structure, data.sample_content)
    return StructureReportResponse(**report)


@router.post("/from-base", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
def create_from_base_endpoint(data: CreateFromBaseRequest, admin_id: AdminId) -> TemplateResponse:
    """Derive a child template from a base design."""
    result = create_from_base(
        data.base_template_id, data.name, data.overrides, created_by=admin_id
    )
    return TemplateResponse(**result)


@router.post("/bulk/update", response_model=BulkResult)
def bulk_update_endpoint(data: BulkUpdateRequest, admin_id: AdminId) -> BulkResult:
    result = bulk_update_templates(
        data.template_ids,
        data.updates,
        create_versions=data.create_versions,
        updated_by=admin_id,
    )
    return BulkResult(**result)


@router.post("/bulk/delete", response_model=BulkResult)
def bulk_delete_endpoint(data: BulkDeleteRequest, _admin: AdminId) -> BulkResult:
    """Delete many templates; failures are reported per template."""
    result = bulk_delete_templates(
        data.template_ids,
        hard=data.hard,
        transfer_dependencies_to=data.transfer_dependencies_to,
    )
    return BulkResult(**result)


@router.post("/bulk/status", response_model=BulkCountResult)
def bulk_status_endpoint(data: BulkStatusRequest, _admin: AdminId) -> BulkCountResult:
    result = bulk_change_status(data.template_ids, data.status, data.review_notes)
    return BulkCountResult(**result)


@router.post("/bulk/feature", response_model=BulkCountResult)
def bulk_feature_endpoint(data: BulkFeatureRequest, _admin: AdminId) -> BulkCountResult:
    result = bulk_toggle_featured(
        data.template_ids,
        data.featured,
        featured_order=data.featured_order,
        featured_until=data.featured_until,
    )
    return BulkCountResult(**result)


@router.get("/{template_id}")
def get_template_endpoint(template_id: TemplateId, _admin: AdminId) -> dict:
    """Get a template with its versions, parent, base and children."""
    return get_template_details(template_id)


@router.get("/{template_id}/resolved", response_model=ResolvedTemplateResponse)
def get_resolved_template_endpoint(
    template_id: TemplateId, _admin: AdminId
) -> ResolvedTemplateResponse:
    """Get the effective document of a template after inheritance."""
    return ResolvedTemplateResponse(**resolve_template(template_id))


@router.patch("/{template_id}", response_model=TemplateResponse)
def update_template_endpoint(
    template_id: TemplateId, data: TemplateUpdateRequest, admin_id: AdminId
) -> TemplateResponse:
    """Update a template. Only provided fields are updated."""
    patch = data.model_dump(exclude_unset=True)
    result = update_template(template_id, patch, updated_by=admin_id)
    return TemplateResponse(**result)


@router.delete("/{template_id}", response_model=TemplateDeleteResponse)
def delete_template_endpoint(
    template_id: TemplateId,
    _admin: AdminId,
    hard: bool = False,
    transfer_dependencies_to: str | None = None,
    delete_variants: bool = False,
) -> TemplateDeleteResponse:
    """Deactivate a template, or remove it with ``hard=true``."""
    result = delete_template(
        template_id,
        hard=hard,
        transfer_dependencies_to=transfer_dependencies_to,
        delete_variants=delete_variants,
    )
    return TemplateDeleteResponse(**result)


@router.post(
    "/{template_id}/duplicate",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_template_endpoint(
    template_id: TemplateId, data: DuplicateTemplateRequest, admin_id: AdminId
) -> TemplateResponse:
    result = duplicate_template(
        template_id,
        data.name,
        overrides=data.overrides,
        set_as_child=data.set_as_child,
        created_by=admin_id,
    )
    return TemplateResponse(**result)
