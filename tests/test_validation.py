"""Tests for structural validation of template documents."""

from __future__ import annotations

import pytest

from template_studio.errors import ValidationError
from template_studio.services.validation import (
    ensure_valid_documents,
    normalize_patch,
    validate_design,
    validate_structure,
)


class TestValidateStructure:
    """Tests for the advisory structure report."""

    def test_valid_structure(self, structure):
        report = validate_structure(structure)

        assert report == {"is_valid": True, "issues": [], "warnings": []}

    def test_duplicate_section_ids(self, structure):
        structure["sections"][1]["id"] = "personal"

        report = validate_structure(structure)

        assert report["is_valid"] is False
        assert "Duplicate section IDs: personal" in report["issues"]

    def test_missing_personal_info(self, structure):
        structure["sections"] = structure["sections"][1:]

        report = validate_structure(structure)

        assert report["is_valid"] is False
        assert "Missing required sections: personal_info" in report["issues"]

    def test_duplicate_order_is_only_a_warning(self, structure):
        structure["sections"][2]["order"] = 1

        report = validate_structure(structure)

        assert report["is_valid"] is True
        assert report["warnings"] == ["Duplicate section order: 1"]

    def test_sample_content_for_absent_sections_warns(self, structure):
        report = validate_structure(structure, {"summary": "x", "projects": "y", "skills": "z"})

        assert report["is_valid"] is True
        assert report["warnings"] == [
            "Sample content has sections not in structure: projects, skills"
        ]

    def test_shape_errors_are_reported_with_location(self, structure):
        del structure["layout"]
        structure["sections"][0]["type"] = "hobbies"

        report = validate_structure(structure)

        assert report["is_valid"] is False
        assert any(issue.startswith("templateStructure.layout") for issue in report["issues"])
        assert any(
            issue.startswith("templateStructure.sections.0.type") for issue in report["issues"]
        )

    def test_unknown_keys_are_rejected(self, structure):
        structure["sections"][0]["colour"] = "red"

        assert validate_structure(structure)["is_valid"] is False


class TestValidateDesign:
    def test_valid_design(self, design):
        assert validate_design(design) == []

    def test_missing_required_color(self, design):
        del design["colors"]["background"]

        issues = validate_design(design)

        assert issues and issues[0].startswith("designConfig.colors.background")

    def test_misspelled_key_fails(self, design):
        design["colors"]["primaryColour"] = "#000"

        assert validate_design(design)


class TestEnsureValidDocuments:
    """Tests for the check the store runs before writing."""

    def test_valid_documents_pass(self, structure, design):
        ensure_valid_documents(structure, design)

    def test_duplicate_order_blocks_save(self, structure, design):
        structure["sections"][2]["order"] = 1

        with pytest.raises(ValidationError) as exc_info:
            ensure_valid_documents(structure, design)

        assert exc_info.value.issues == ["Duplicate section order: 1"]

    def test_issues_from_both_documents_are_collected(self, structure, design):
        structure["sections"] = structure["sections"][1:]
        del design["spacing"]

        with pytest.raises(ValidationError) as exc_info:
            ensure_valid_documents(structure, design)

        issues = exc_info.value.issues
        assert "Missing required sections: personal_info" in issues
        assert any(issue.startswith("designConfig.spacing") for issue in issues)


class TestNormalizePatch:
    def test_unset_fields_are_dropped(self):
        patch = normalize_patch({"colorChanges": {"primary": "#0000FF"}})

        assert patch == {"colorChanges": {"primary": "#0000FF"}}

    def test_empty_patch(self):
        assert normalize_patch(None) == {}

    def test_unknown_dimension_is_rejected(self):
        with pytest.raises(ValidationError):
            normalize_patch({"fontChanges": {"size": 12}})
