"""User customization patch.

Every field is optional; a dimension that is absent leaves the resolved
template untouched.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from template_studio.models.base import DocumentModel
from template_studio.models.structure import PageMargins


class ColorChanges(DocumentModel):
    primary: str | None = None
    secondary: str | None = None
    accent: str | None = None
    text: str | None = None
    text_secondary: str | None = None
    background: str | None = None
    border: str | None = None


class LayoutChanges(DocumentModel):
    columns: Literal[1, 2] | None = None
    header_style: Literal["minimal", "standard", "prominent"] | None = None
    page_margins: PageMargins | None = None
    section_spacing: float | None = None


class HeadingSizeChanges(DocumentModel):
    h1: float | None = None
    h2: float | None = None
    h3: float | None = None


class FontWeightChanges(DocumentModel):
    normal: int | None = None
    bold: int | None = None
    heading: int | None = None


class TypographyChanges(DocumentModel):
    font_family: str | None = None
    font_size: float | None = None
    line_height: float | None = None
    heading_font_family: str | None = None
    heading_sizes: HeadingSizeChanges | None = None
    font_weights: FontWeightChanges | None = None


class AddedSection(DocumentModel):
    id: str
    name: str
    type: Literal["custom"] = "custom"
    order: int


class SectionSetting(DocumentModel):
    max_items: int | None = None
    is_required: bool | None = None


class SectionChanges(DocumentModel):
    sections_removed: list[str] | None = None
    sections_added: list[AddedSection] | None = None
    order_changes: dict[str, int] | None = None
    section_settings: dict[str, SectionSetting] | None = None


class SpacingChanges(DocumentModel):
    section_spacing: float | None = None
    item_spacing: float | None = None
    paragraph_spacing: float | None = None


class BorderChanges(DocumentModel):
    section_dividers: bool | None = None
    header_underline: bool | None = None
    style: Literal["solid", "dotted", "dashed"] | None = None
    width: float | None = None


class EffectChanges(DocumentModel):
    shadows: bool | None = None
    animations: bool | None = None
    gradients: bool | None = None


class CustomContent(DocumentModel):
    personal_info: dict[str, str] | None = Field(None, alias="personal_info")
    summary: str | None = None
    experience: str | None = None
    education: str | None = None
    skills: str | None = None
    projects: str | None = None
    achievements: str | None = None
    references: str | None = None
    custom: dict[str, Any] | None = None


class CustomizationPatch(DocumentModel):
    color_changes: ColorChanges | None = None
    layout_changes: LayoutChanges | None = None
    typography_changes: TypographyChanges | None = None
    section_changes: SectionChanges | None = None
    spacing_changes: SpacingChanges | None = None
    border_changes: BorderChanges | None = None
    effect_changes: EffectChanges | None = None
    custom_content: CustomContent | None = None
    custom_css: str | None = Field(None, alias="customCSS")
