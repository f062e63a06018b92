"""Pydantic schemas for template API endpoints.

``template_structure`` and ``design_config`` are passed through as JSON
documents; their shape is checked by the service once inheritance has been
resolved, because a child template only carries overrides.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from template_studio.api.schemas.common import PaginationMeta

Category = Literal["professional", "modern", "creative", "academic"]
DocumentType = Literal["resume", "cv", "cover_letter"]
ReviewStatus = Literal["pending", "approved", "rejected"]
VariantType = Literal["color", "layout", "typography", "style", "complete"]
SortField = Literal[
    "name", "created", "updated", "usage", "rating", "quality", "completion_rate", "export_rate"
]


class TemplateResponse(BaseModel):
    """Response schema for a stored template."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    category: str
    document_type: str
    parent_template_id: str | None = None
    base_template_id: str | None = None
    is_base_template: bool = False
    is_variant: bool = False
    variant_type: str | None = None
    variant_name: str | None = None
    template_structure: dict[str, Any]
    design_config: dict[str, Any]
    sample_content: dict[str, Any] = Field(default_factory=dict)
    component_code: str | None = None
    component_version: str = "1.0.0"
    target_specializations: list[str] = Field(default_factory=list)
    target_industries: list[str] = Field(default_factory=list)
    target_experience_level: str | None = None
    tags: list[str] = Field(default_factory=list)
    search_keywords: str | None = None
    is_active: bool
    is_draft: bool
    is_public: bool
    is_premium: bool
    is_featured: bool
    featured_order: int | None = None
    featured_until: datetime | None = None
    review_status: str
    review_notes: str | None = None
    quality_score: int | None = None
    version: str
    usage_count: int = 0
    avg_rating: float = 0.0
    total_ratings: int = 0
    conversion_rate: float = 0.0
    completion_rate: float = 0.0
    export_rate: float = 0.0
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime
    variants: list[dict[str, Any]] | None = None


class TemplateListResponse(BaseModel):
    """Response schema for template search results."""

    templates: list[TemplateResponse]
    pagination: PaginationMeta


class _TemplateFields(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str | None = Field(None, description="Short description")
    parent_template_id: str | None = Field(
        None, description="Template whose resolved document this one overrides"
    )
    base_template_id: str | None = Field(None, description="Design root of a variant")
    is_base_template: bool | None = None
    is_variant: bool | None = None
    variant_type: VariantType | None = None
    variant_name: str | None = None
    sample_content: dict[str, Any] | None = None
    component_code: str | None = None
    component_version: str | None = None
    target_specializations: list[str] | None = None
    target_industries: list[str] | None = None
    target_experience_level: str | None = None
    tags: list[str] | None = None
    search_keywords: str | None = None
    is_active: bool | None = None
    is_draft: bool | None = None
    is_public: bool | None = None
    is_premium: bool | None = None
    is_featured: bool | None = None
    featured_order: int | None = None
    featured_until: datetime | None = None
    review_status: ReviewStatus | None = None
    review_notes: str | None = None
    quality_score: int | None = Field(None, ge=0, le=100)


class TemplateCreateRequest(_TemplateFields):
    """Request schema for creating a template."""

    name: str = Field(..., min_length=1, max_length=255, description="Template name")
    category: Category
    document_type: DocumentType
    template_structure: dict[str, Any] = Field(
        default_factory=dict, description="Sections and layout (overrides only for children)"
    )
    design_config: dict[str, Any] = Field(
        default_factory=dict, description="Visual design (overrides only for children)"
    )
    version: str = Field("1.0.0", description="Initial version string")


class TemplateUpdateRequest(_TemplateFields):
    """Request schema for updating a template. Only provided fields are updated."""

    name: str | None = Field(None, min_length=1, max_length=255)
    category: Category | None = None
    document_type: DocumentType | None = None
    template_structure: dict[str, Any] | None = None
    design_config: dict[str, Any] | None = None
    version: str | None = Field(
        None, description="New version string; with a document change, records a version"
    )


class TemplateDeleteResponse(BaseModel):
    id: str
    hard: bool
    transferred_to: str | None = None
    children_transferred: int = 0
    customizations_transferred: int = 0
    variants_deleted: int = 0


class DuplicateTemplateRequest(BaseModel):
    """Request schema for duplicating a template."""

    name: str = Field(..., min_length=1, max_length=255)
    overrides: dict[str, Any] = Field(
        default_factory=dict,
        description="Fields and document fragments applied to the copy",
    )
    set_as_child: bool = Field(False, description="Make the copy a child of the source")


class CreateFromBaseRequest(BaseModel):
    """Request schema for deriving a template from a base design."""

    base_template_id: str
    name: str = Field(..., min_length=1, max_length=255)
    overrides: dict[str, Any] = Field(default_factory=dict)


class BulkUpdateRequest(BaseModel):
    template_ids: list[str] = Field(..., min_length=1)
    updates: dict[str, Any]
    create_versions: bool = False


class BulkDeleteRequest(BaseModel):
    template_ids: list[str] = Field(..., min_length=1)
    hard: bool = False
    transfer_dependencies_to: str | None = None


class BulkStatusRequest(BaseModel):
    template_ids: list[str] = Field(..., min_length=1)
    status: ReviewStatus
    review_notes: str | None = None


class BulkFeatureRequest(BaseModel):
    template_ids: list[str] = Field(..., min_length=1)
    featured: bool
    featured_order: int | None = None
    featured_until: datetime | None = None


class ValidateStructureRequest(BaseModel):
    template_structure: dict[str, Any]
    sample_content: dict[str, Any] | None = None


class StructureReportResponse(BaseModel):
    is_valid: bool
    issues: list[str]
    warnings: list[str]


class ResolvedTemplateResponse(BaseModel):
    """Effective document of a template after inheritance (and customization)."""

    id: str
    name: str
    description: str | None = None
    category: str
    document_type: str
    version: str
    tags: list[str] = Field(default_factory=list)
    template_structure: dict[str, Any]
    design_config: dict[str, Any]
    sample_content: dict[str, Any] = Field(default_factory=dict)
    lineage: list[str]
    content: dict[str, Any] | None = None
    custom_css: str | None = None
    customization_id: str | None = None


class CatalogTemplate(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str
    document_type: str
    variant_type: str | None = None
    variant_name: str | None = None
    version: str
    tags: list[str] = Field(default_factory=list)
    is_active: bool
    is_premium: bool
    is_featured: bool
    usage_count: int
    avg_rating: float
    total_ratings: int


class CatalogResponse(BaseModel):
    templates: list[CatalogTemplate]
    pagination: PaginationMeta
