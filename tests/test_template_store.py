"""Tests for the template store service."""

from __future__ import annotations

import pytest

from template_studio.errors import DependencyError, NotFoundError, ValidationError
from template_studio.services.customization import get_customization, save_customization
from template_studio.services.inheritance import resolve_template
from template_studio.services.template_store import (
    browse_templates,
    bulk_change_status,
    bulk_delete_templates,
    bulk_toggle_featured,
    bulk_update_templates,
    create_from_base,
    create_template,
    delete_template,
    duplicate_template,
    get_template,
    get_template_details,
    list_templates,
    update_template,
)
from template_studio.services.version_ledger import list_versions


def _child(parent_id: str, name: str, **fields) -> dict:
    return {
        "name": name,
        "category": "modern",
        "document_type": "resume",
        "parent_template_id": parent_id,
        **fields,
    }


class TestCreateTemplate:
    """Tests for create_template."""

    def test_create_returns_row_with_defaults(self, template_payload, admin_user):
        template = create_template(template_payload, created_by=admin_user["id"])

        assert template["id"]
        assert template["name"] == "Base Resume"
        assert template["version"] == "1.0.0"
        assert template["is_active"] is True
        assert template["usage_count"] == 0
        assert template["created_by"] == admin_user["id"]

    def test_create_appends_initial_version(self, template_payload):
        template = create_template(template_payload)

        versions = list_versions(template["id"])

        assert len(versions) == 1
        assert versions[0]["version_number"] == "1.0.0"
        assert versions[0]["version_type"] == "major"
        assert versions[0]["changelog_notes"] == "Initial template version"
        assert versions[0]["snapshot"]["designConfig"] == template_payload["design_config"]

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            create_template({"description": "nameless"})

        assert exc_info.value.issues == [
            "name is required",
            "category is required",
            "document_type is required",
        ]

    def test_unknown_category(self, template_payload):
        with pytest.raises(ValidationError):
            create_template({**template_payload, "category": "retro"})

    def test_root_template_needs_complete_documents(self, template_payload):
        with pytest.raises(ValidationError):
            create_template({**template_payload, "design_config": {"colors": {"primary": "#F00"}}})

    def test_unknown_parent(self):
        with pytest.raises(NotFoundError):
            create_template(_child("missing", "Orphan"))

    def test_child_is_validated_against_resolved_parent(self, template_payload):
        base = create_template(template_payload)

        with pytest.raises(ValidationError):
            create_template(
                _child(base["id"], "Broken", design_config={"borders": {"style": "wavy"}})
            )

    def test_variant_requires_base_template(self, template_payload):
        plain = create_template(template_payload)

        with pytest.raises(ValidationError):
            create_template(
                {
                    **template_payload,
                    "name": "Variant",
                    "base_template_id": plain["id"],
                    "is_variant": True,
                }
            )


class TestUpdateTemplate:
    """Tests for update_template and its version snapshots."""

    def test_new_structure_and_version_appends_snapshot(self, template_payload, structure):
        template = create_template(template_payload)
        structure["sections"].append(
            {"id": "skills", "name": "Skills", "type": "skills", "order": 3}
        )

        updated = update_template(
            template["id"], {"template_structure": structure, "version": "1.1.0"}
        )

        versions = list_versions(template["id"])
        assert updated["version"] == "1.1.0"
        assert len(versions) == 2
        assert {v["version_number"] for v in versions} == {"1.0.0", "1.1.0"}
        latest = next(v for v in versions if v["version_number"] == "1.1.0")
        assert latest["changelog_notes"] == "Updated to version 1.1.0"
        assert len(latest["snapshot"]["templateStructure"]["sections"]) == 4

    def test_significant_change_without_new_version_is_not_snapshotted(
        self, template_payload, design
    ):
        template = create_template(template_payload)
        design["colors"]["primary"] = "#000000"

        update_template(template["id"], {"design_config": design})

        assert len(list_versions(template["id"])) == 1

    def test_cosmetic_change_is_not_snapshotted(self, template_payload):
        template = create_template(template_payload)

        updated = update_template(template["id"], {"description": "Updated copy"})

        assert updated["description"] == "Updated copy"
        assert len(list_versions(template["id"])) == 1

    def test_invalid_structure_is_rejected_and_nothing_written(self, template_payload, structure):
        template = create_template(template_payload)
        structure["sections"][2]["order"] = 0

        with pytest.raises(ValidationError):
            update_template(template["id"], {"template_structure": structure, "version": "2.0.0"})

        assert get_template(template["id"])["version"] == "1.0.0"
        assert len(list_versions(template["id"])) == 1

    def test_null_for_required_field_is_rejected(self, template_payload):
        template = create_template(template_payload)

        with pytest.raises(ValidationError):
            update_template(template["id"], {"name": None})

    def test_unknown_template(self):
        with pytest.raises(NotFoundError):
            update_template("missing", {"description": "x"})


class TestDeleteTemplate:
    """Tests for soft and hard deletes."""

    def test_soft_delete_deactivates(self, template_payload):
        template = create_template(template_payload)

        result = delete_template(template["id"])

        assert result == {"id": template["id"], "hard": False}
        assert get_template(template["id"])["is_active"] is False

    def test_hard_delete_without_dependents(self, template_payload):
        template = create_template(template_payload)

        result = delete_template(template["id"], hard=True)

        assert result["hard"] is True
        with pytest.raises(NotFoundError):
            get_template(template["id"])

    def test_hard_delete_with_children_is_blocked(self, template_payload):
        base = create_template(template_payload)
        create_template(_child(base["id"], "Child"))

        with pytest.raises(DependencyError) as exc_info:
            delete_template(base["id"], hard=True)

        assert exc_info.value.details["children"] == 1
        assert get_template(base["id"])["is_active"] is True

    def test_hard_delete_transfers_children_and_customizations(
        self, template_payload, regular_user
    ):
        base = create_template(template_payload)
        target = create_template({**template_payload, "name": "Target"})
        child = create_template(_child(base["id"], "Child"))
        customization = save_customization(
            regular_user["id"], base["id"], {"colorChanges": {"primary": "#FF0000"}}
        )

        result = delete_template(base["id"], hard=True, transfer_dependencies_to=target["id"])

        assert result["transferred_to"] == target["id"]
        assert result["children_transferred"] == 1
        assert result["customizations_transferred"] == 1
        assert get_template(child["id"])["parent_template_id"] == target["id"]
        assert resolve_template(child["id"])["lineage"] == [target["id"], child["id"]]
        moved = get_customization(regular_user["id"], customization["id"])
        assert moved["template_id"] == target["id"]

    def test_transfer_to_self_is_rejected(self, template_payload):
        base = create_template(template_payload)
        create_template(_child(base["id"], "Child"))

        with pytest.raises(ValidationError):
            delete_template(base["id"], hard=True, transfer_dependencies_to=base["id"])

    def test_delete_variants(self, template_payload):
        base = create_template({**template_payload, "is_base_template": True})
        variant = create_from_base(base["id"], "Blue", {"design_config": {"colors": {}}})

        result = delete_template(base["id"], hard=True, delete_variants=True)

        assert result["variants_deleted"] == 1
        with pytest.raises(NotFoundError):
            get_template(variant["id"])

    def test_delete_variants_with_dependents_needs_transfer_target(self, template_payload):
        base = create_template({**template_payload, "is_base_template": True})
        variant = create_from_base(base["id"], "Blue")
        grandchild = create_template(_child(variant["id"], "Blue Compact"))

        with pytest.raises(DependencyError) as exc_info:
            delete_template(base["id"], hard=True, delete_variants=True)

        assert exc_info.value.details == {"variant_dependents": [grandchild["id"]]}
        # Nothing was deleted
        assert get_template(variant["id"])["parent_template_id"] == base["id"]

    def test_delete_variants_moves_their_dependents(self, template_payload):
        base = create_template({**template_payload, "is_base_template": True})
        variant = create_from_base(base["id"], "Blue", {"is_base_template": True})
        nested = create_from_base(variant["id"], "Blue Compact")
        target = create_template({**template_payload, "name": "Target"})

        result = delete_template(
            base["id"], hard=True, transfer_dependencies_to=target["id"], delete_variants=True
        )

        moved = get_template(nested["id"])
        assert result["variants_deleted"] == 1
        assert result["children_transferred"] == 1
        assert moved["parent_template_id"] == target["id"]
        assert moved["base_template_id"] == target["id"]
        assert resolve_template(nested["id"])["lineage"] == [target["id"], nested["id"]]
        with pytest.raises(NotFoundError):
            get_template(variant["id"])

    def test_transfer_target_cannot_be_a_deleted_variant(self, template_payload):
        base = create_template({**template_payload, "is_base_template": True})
        variant = create_from_base(base["id"], "Blue")

        with pytest.raises(ValidationError):
            delete_template(
                base["id"], hard=True, transfer_dependencies_to=variant["id"], delete_variants=True
            )

    def test_bulk_delete_reports_blocked_templates(self, template_payload):
        blocked = create_template(template_payload)
        create_template(_child(blocked["id"], "Child"))
        free = create_template({**template_payload, "name": "Free"})

        result = bulk_delete_templates([blocked["id"], free["id"], "missing"], hard=True)

        assert result["success"] is False
        assert result["success_count"] == 1
        assert len(result["errors"]) == 2
        assert result["errors"][0].startswith(f"Template {blocked['id']}:")


class TestListTemplates:
    """Tests for the admin search."""

    def test_filters_and_total_count(self, template_payload):
        create_template(template_payload)
        create_template(
            {
                **template_payload,
                "name": "Academic CV",
                "category": "academic",
                "document_type": "cv",
                "tags": ["research"],
            }
        )
        create_template({**template_payload, "name": "Letter", "document_type": "cover_letter"})

        assert list_templates()["total_count"] == 3
        assert list_templates({"document_type": "cv"})["templates"][0]["name"] == "Academic CV"
        assert list_templates({"category": "professional"})["total_count"] == 2
        assert list_templates({"tags": ["research"]})["total_count"] == 1
        assert list_templates({"search": "letter"})["total_count"] == 1

    def test_sort_and_pagination(self, template_payload):
        for name in ("Charlie", "Alpha", "Bravo"):
            create_template({**template_payload, "name": name})

        page = list_templates({"sort_by": "name", "sort_order": "asc", "limit": 2, "offset": 1})

        assert [t["name"] for t in page["templates"]] == ["Bravo", "Charlie"]
        assert page["total_count"] == 3

    def test_unknown_sort_column(self):
        with pytest.raises(ValidationError):
            list_templates({"sort_by": "colour"})

    def test_has_parent_and_variants(self, template_payload):
        base = create_template({**template_payload, "is_base_template": True})
        variant = create_from_base(base["id"], "Blue")

        children = list_templates({"has_parent": True})
        roots = list_templates({"has_parent": False, "include_variants": True})

        assert [t["id"] for t in children["templates"]] == [variant["id"]]
        assert roots["templates"][0]["variants"][0]["id"] == variant["id"]

    def test_browse_hides_drafts_and_inactive(self, template_payload):
        visible = create_template(template_payload)
        create_template({**template_payload, "name": "Draft", "is_draft": True})
        hidden = create_template({**template_payload, "name": "Gone"})
        delete_template(hidden["id"])

        catalog = browse_templates()

        assert [t["id"] for t in catalog["templates"]] == [visible["id"]]


class TestCopies:
    """Tests for duplicate_template and create_from_base."""

    def test_duplicate_is_independent_draft(self, template_payload):
        source = create_template(template_payload)

        copy = duplicate_template(
            source["id"], "Copy", {"design_config": {"colors": {"primary": "#00AA00"}}}
        )

        assert copy["parent_template_id"] is None
        assert copy["is_draft"] is True
        assert copy["version"] == "1.0.0"
        assert copy["design_config"]["colors"]["primary"] == "#00AA00"
        assert copy["design_config"]["colors"]["text"] == "#111111"
        assert copy["template_structure"] == template_payload["template_structure"]

    def test_duplicate_as_child_stores_only_overrides(self, template_payload):
        source = create_template(template_payload)

        child = duplicate_template(
            source["id"],
            "Child copy",
            {"design_config": {"colors": {"primary": "#00AA00"}}},
            set_as_child=True,
        )

        assert child["parent_template_id"] == source["id"]
        assert child["design_config"] == {"colors": {"primary": "#00AA00"}}
        assert child["template_structure"] == {}
        resolved = resolve_template(child["id"])
        assert resolved["design_config"]["colors"]["primary"] == "#00AA00"

    def test_create_from_base_template_records_variant(self, template_payload):
        base = create_template({**template_payload, "is_base_template": True})

        variant = create_from_base(base["id"], "Compact", {"variant_type": "layout"})

        assert variant["parent_template_id"] == base["id"]
        assert variant["base_template_id"] == base["id"]
        assert variant["is_variant"] is True
        details = get_template_details(base["id"])
        assert [c["id"] for c in details["children"]] == [variant["id"]]

    def test_create_from_plain_template_is_only_a_child(self, template_payload):
        base = create_template(template_payload)

        child = create_from_base(base["id"], "Child")

        assert child["parent_template_id"] == base["id"]
        assert child["base_template_id"] is None
        assert child["is_variant"] is False


class TestBulkOperations:
    """Tests for the bulk admin operations."""

    def test_bulk_update(self, template_payload):
        first = create_template(template_payload)
        second = create_template({**template_payload, "name": "Second"})

        result = bulk_update_templates(
            [first["id"], second["id"], "missing"], {"category": "creative"}
        )

        assert result["success"] is False
        assert result["success_count"] == 2
        assert result["errors"] == ["Template missing: Template 'missing' not found"]
        assert get_template(second["id"])["category"] == "creative"

    def test_bulk_update_rejects_documents(self, template_payload):
        template = create_template(template_payload)

        with pytest.raises(ValidationError):
            bulk_update_templates([template["id"]], {"design_config": {}})

    def test_bulk_update_with_versions(self, template_payload):
        template = create_template(template_payload)

        bulk_update_templates([template["id"]], {"version": "1.0.1"}, create_versions=True)

        assert len(list_versions(template["id"])) == 2

    def test_bulk_change_status(self, template_payload):
        ids = [create_template({**template_payload, "name": n})["id"] for n in ("A", "B")]

        result = bulk_change_status(ids, "approved", review_notes="Looks good")

        assert result == {"success": True, "updated": 2}
        assert get_template(ids[0])["review_status"] == "approved"
        assert get_template(ids[1])["review_notes"] == "Looks good"

    def test_bulk_change_status_rejects_unknown_status(self, template_payload):
        template = create_template(template_payload)

        with pytest.raises(ValidationError):
            bulk_change_status([template["id"]], "shelved")

    def test_bulk_toggle_featured(self, template_payload):
        template = create_template(template_payload)

        bulk_toggle_featured([template["id"]], True, featured_order=1)
        featured = get_template(template["id"])
        bulk_toggle_featured([template["id"]], False)
        unfeatured = get_template(template["id"])

        assert featured["is_featured"] is True
        assert featured["featured_order"] == 1
        assert unfeatured["is_featured"] is False
        assert unfeatured["featured_order"] is None
