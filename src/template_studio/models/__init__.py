"""Pydantic models for the JSON documents carried by templates."""

from __future__ import annotations

from template_studio.models.customization import CustomizationPatch
from template_studio.models.design import DesignConfig
from template_studio.models.structure import Section, TemplateStructure

__all__ = ["CustomizationPatch", "DesignConfig", "Section", "TemplateStructure"]
