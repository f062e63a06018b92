"""Shared vocabulary for templates, versions and usage events."""

from __future__ import annotations

CATEGORIES = ("professional", "modern", "creative", "academic")
DOCUMENT_TYPES = ("resume", "cv", "cover_letter")
REVIEW_STATUSES = ("pending", "approved", "rejected")
VERSION_TYPES = ("major", "minor", "patch")
VARIANT_TYPES = ("color", "layout", "typography", "style", "complete")
ACTION_TYPES = ("preview", "select", "customize", "export", "duplicate")

SECTION_TYPES = (
    "personal_info",
    "summary",
    "experience",
    "education",
    "skills",
    "projects",
    "custom",
)

# A structure must contain at least one section of each of these types.
REQUIRED_SECTION_TYPES = ("personal_info",)

# Parent chains deeper than this are treated as corrupt.
MAX_INHERITANCE_DEPTH = 16

# Fields whose change, together with a new version string, appends a version.
SIGNIFICANT_FIELDS = (
    "template_structure",
    "design_config",
    "component_code",
    "version",
)

TIME_RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
