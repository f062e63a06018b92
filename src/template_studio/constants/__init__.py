from __future__ import annotations

from template_studio.constants.template_constants import (
    ACTION_TYPES,
    CATEGORIES,
    DEFAULT_LIMIT,
    DOCUMENT_TYPES,
    MAX_INHERITANCE_DEPTH,
    MAX_LIMIT,
    REQUIRED_SECTION_TYPES,
    REVIEW_STATUSES,
    SECTION_TYPES,
    SIGNIFICANT_FIELDS,
    TIME_RANGE_DAYS,
    VARIANT_TYPES,
    VERSION_TYPES,
)

__all__ = [
    "ACTION_TYPES",
    "CATEGORIES",
    "DEFAULT_LIMIT",
    "DOCUMENT_TYPES",
    "MAX_INHERITANCE_DEPTH",
    "MAX_LIMIT",
    "REQUIRED_SECTION_TYPES",
    "REVIEW_STATUSES",
    "SECTION_TYPES",
    "SIGNIFICANT_FIELDS",
    "TIME_RANGE_DAYS",
    "VARIANT_TYPES",
    "VERSION_TYPES",
]
