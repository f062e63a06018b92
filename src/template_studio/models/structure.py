"""Section and layout structure of a template."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from template_studio.models.base import DocumentModel

SectionType = Literal[
    "personal_info", "summary", "experience", "education", "skills", "projects", "custom"
]


class SectionValidation(DocumentModel):
    min_items: int | None = Field(None, ge=0)
    required_fields: list[str] | None = None
    field_types: dict[str, str] | None = None


class ConditionalVisibility(DocumentModel):
    depends_on: str | None = None
    condition: Literal["exists", "empty", "equals"] | None = None
    value: str | int | float | bool | None = None


class Section(DocumentModel):
    id: str = Field(min_length=1)
    name: str
    type: SectionType
    is_required: bool = False
    order: int = Field(ge=0)
    description: str | None = None
    max_items: int | None = Field(None, ge=1)
    validation: SectionValidation | None = None
    conditional_visibility: ConditionalVisibility | None = None


class PageMargins(DocumentModel):
    top: float
    bottom: float
    left: float
    right: float


class StructureLayout(DocumentModel):
    columns: Literal[1, 2]
    header_style: Literal["minimal", "standard", "prominent"]
    page_margins: PageMargins | None = None
    section_spacing: float | None = None
    allow_reordering: bool | None = None


class CustomFieldValidation(DocumentModel):
    required: bool | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


class CustomField(DocumentModel):
    id: str
    name: str
    type: Literal["text", "textarea", "date", "url", "list"]
    section: str
    order: int
    validation: CustomFieldValidation | None = None


class TemplateStructure(DocumentModel):
    """Complete structure of a resolved template."""

    sections: list[Section]
    layout: StructureLayout
    custom_fields: list[CustomField] | None = None
