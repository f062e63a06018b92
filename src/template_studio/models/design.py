"""Design configuration of a template.

Each style dimension is its own record so a typo such as ``primaryColour``
fails validation instead of being silently stored.
"""

from __future__ import annotations

from typing import Literal

from template_studio.models.base import DocumentModel


class ColorVariation(DocumentModel):
    primary: str
    secondary: str | None = None
    accent: str | None = None


class Colors(DocumentModel):
    primary: str
    secondary: str | None = None
    accent: str | None = None
    text: str
    text_secondary: str | None = None
    background: str
    border: str | None = None
    variations: dict[str, ColorVariation] | None = None


class HeadingSizes(DocumentModel):
    h1: float
    h2: float
    h3: float


class FontWeights(DocumentModel):
    normal: int
    bold: int
    heading: int


class Typography(DocumentModel):
    font_family: str
    font_size: float
    line_height: float | None = None
    heading_font_family: str | None = None
    heading_sizes: HeadingSizes | None = None
    font_weights: FontWeights | None = None
    letter_spacing: float | None = None


class Spacing(DocumentModel):
    section_spacing: float
    item_spacing: float | None = None
    paragraph_spacing: float | None = None
    margin_top: float | None = None
    margin_bottom: float | None = None


class Borders(DocumentModel):
    section_dividers: bool
    header_underline: bool
    style: Literal["solid", "dotted", "dashed"]
    width: float
    radius: float | None = None


class DesignLayout(DocumentModel):
    max_width: str | None = None
    column_gap: float | None = None
    row_gap: float | None = None
    alignment: Literal["left", "center", "right"] | None = None


class Effects(DocumentModel):
    shadows: bool | None = None
    animations: bool | None = None
    gradients: bool | None = None


class DesignConfig(DocumentModel):
    """Complete design of a resolved template."""

    colors: Colors
    typography: Typography
    spacing: Spacing
    borders: Borders | None = None
    layout: DesignLayout | None = None
    effects: Effects | None = None
