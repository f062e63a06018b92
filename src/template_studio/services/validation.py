"""Structural validation of template documents.

``validate_structure`` is advisory and reports issues and warnings.
``ensure_valid_documents`` is what the template store calls before writing;
it treats duplicate section ordering as a hard failure.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, TypedDict

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from template_studio.constants import REQUIRED_SECTION_TYPES
from template_studio.errors import ValidationError
from template_studio.models import CustomizationPatch, DesignConfig, TemplateStructure

logger = logging.getLogger(__name__)

__all__ = [
    "StructureReport",
    "collect_document_issues",
    "ensure_valid_documents",
    "ensure_valid_structure",
    "normalize_patch",
    "validate_design",
    "validate_structure",
]


class StructureReport(TypedDict):
    """Result of an advisory structure check."""

    is_valid: bool
    issues: list[str]
    warnings: list[str]


def _format_errors(exc: PydanticValidationError, prefix: str) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in (prefix, *error["loc"]))
        messages.append(f"{location}: {error['msg']}")
    return messages


def _parse(model: type[BaseModel], document: Any, prefix: str) -> tuple[Any, list[str]]:
    try:
        return model.model_validate(document), []
    except PydanticValidationError as exc:
        return None, _format_errors(exc, prefix)


def validate_structure(
    structure: dict[str, Any],
    sample_content: dict[str, Any] | None = None,
) -> StructureReport:
    """Check a template structure without raising.

    Args:
        structure: Template structure document (sections + layout)
        sample_content: Optional mapping of section type to sample text

    Returns:
        Report with ``is_valid``, hard ``issues`` (shape errors, duplicate
        section ids, missing required section types) and ``warnings``
        (duplicate section order, sample content for absent sections).
    """
    parsed, issues = _parse(TemplateStructure, structure, "templateStructure")
    warnings: list[str] = []

    if parsed is not None:
        ids = Counter(section.id for section in parsed.sections)
        duplicate_ids = sorted(section_id for section_id, n in ids.items() if n > 1)
        if duplicate_ids:
            issues.append(f"Duplicate section IDs: {', '.join(duplicate_ids)}")

        present_types = {section.type for section in parsed.sections}
        missing = [t for t in REQUIRED_SECTION_TYPES if t not in present_types]
        if missing:
            issues.append(f"Missing required sections: {', '.join(missing)}")

        orders = Counter(section.order for section in parsed.sections)
        for order in sorted(o for o, n in orders.items() if n > 1):
            warnings.append(f"Duplicate section order: {order}")

        if sample_content:
            extra = sorted(
                key for key in sample_content if key not in present_types and key != "custom"
            )
            if extra:
                warnings.append(
                    f"Sample content has sections not in structure: {', '.join(extra)}"
                )

    return {"is_valid": not issues, "issues": issues, "warnings": warnings}


def validate_design(design: dict[str, Any]) -> list[str]:
    """Return shape errors for a complete design config (empty when valid)."""
    _, issues = _parse(DesignConfig, design, "designConfig")
    return issues


def _structure_save_issues(structure: dict[str, Any]) -> list[str]:
    report = validate_structure(structure)
    issues = list(report["issues"])
    # Section ordering must be strictly unique on save.
    issues.extend(w for w in report["warnings"] if w.startswith("Duplicate section order"))
    return issues


def collect_document_issues(structure: dict[str, Any], design: dict[str, Any]) -> list[str]:
    """All issues that block saving a template whose resolved documents are given."""
    return _structure_save_issues(structure) + validate_design(design)


def ensure_valid_structure(structure: dict[str, Any]) -> None:
    """Raise ``ValidationError`` if a resolved structure cannot be saved."""
    issues = _structure_save_issues(structure)
    if issues:
        logger.warning("Template structure rejected: %s", issues)
        raise ValidationError(issues)


def ensure_valid_documents(structure: dict[str, Any], design: dict[str, Any]) -> None:
    """Raise ``ValidationError`` if the resolved documents cannot be saved."""
    issues = collect_document_issues(structure, design)
    if issues:
        logger.warning("Template documents rejected: %s", issues)
        raise ValidationError(issues)


def normalize_patch(patch: dict[str, Any] | None) -> dict[str, Any]:
    """Validate a customization patch and drop unset fields."""
    parsed, issues = _parse(CustomizationPatch, patch or {}, "customizations")
    if issues:
        logger.warning("Customization patch rejected: %s", issues)
        raise ValidationError(issues)
    return parsed.to_document()
