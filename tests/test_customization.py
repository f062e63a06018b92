"""Tests for the customization overlay."""

from __future__ import annotations

import copy

import pytest

from template_studio.errors import (
    ForbiddenError,
    MismatchError,
    NotFoundError,
    ValidationError,
)
from template_studio.services.customization import (
    apply_customization,
    delete_customization,
    get_customization,
    get_shared_customization,
    list_customizations,
    render_effective_document,
    save_customization,
    share_customization,
)
from template_studio.services.inheritance import resolve_template
from template_studio.services.template_store import create_template, delete_template


@pytest.fixture
def template(template_payload) -> dict:
    return create_template(template_payload)


class TestApplyCustomization:
    """Tests for the pure overlay."""

    def test_color_change_overrides_only_that_color(self, template):
        resolved = resolve_template(template["id"])

        document = apply_customization(resolved, {"colorChanges": {"primary": "#0000FF"}})

        assert document["design_config"]["colors"]["primary"] == "#0000FF"
        assert document["design_config"]["colors"]["text"] == "#111111"
        assert document["design_config"]["typography"] == resolved["design_config"]["typography"]
        assert document["template_structure"] == resolved["template_structure"]

    def test_inputs_are_not_mutated(self, template):
        resolved = resolve_template(template["id"])
        before = copy.deepcopy(resolved)
        patch = {"colorChanges": {"primary": "#0000FF"}, "layoutChanges": {"columns": 2}}

        apply_customization(resolved, patch)

        assert resolved == before
        assert patch == {"colorChanges": {"primary": "#0000FF"}, "layoutChanges": {"columns": 2}}

    def test_layout_and_typography_changes(self, template):
        resolved = resolve_template(template["id"])

        document = apply_customization(
            resolved,
            {
                "layoutChanges": {"columns": 2, "headerStyle": "prominent"},
                "typographyChanges": {"fontSize": 12, "headingSizes": {"h1": 28}},
            },
        )

        assert document["template_structure"]["layout"] == {
            "columns": 2,
            "headerStyle": "prominent",
        }
        typography = document["design_config"]["typography"]
        assert typography["fontSize"] == 12
        assert typography["fontFamily"] == "Inter"
        assert typography["headingSizes"] == {"h1": 28, "h2": 16, "h3": 13}

    def test_section_changes(self, template):
        resolved = resolve_template(template["id"])

        document = apply_customization(
            resolved,
            {
                "sectionChanges": {
                    "sectionsRemoved": ["summary"],
                    "sectionsAdded": [{"id": "awards", "name": "Awards", "order": 1}],
                    "orderChanges": {"experience": 5},
                    "sectionSettings": {"experience": {"maxItems": 3}},
                }
            },
        )

        sections = document["template_structure"]["sections"]
        assert [s["id"] for s in sections] == ["personal", "awards", "experience"]
        assert sections[1]["type"] == "custom"
        assert sections[1]["isRequired"] is False
        assert sections[2]["order"] == 5
        assert sections[2]["maxItems"] == 3

    def test_content_and_css(self, template):
        resolved = resolve_template(template["id"])

        document = apply_customization(
            resolved,
            {
                "customContent": {"summary": "Hello", "headline": "Staff Engineer"},
                "customCSS": ".name { color: red; }",
            },
        )

        assert document["sample_content"] == {"summary": "Hello", "headline": "Staff Engineer"}
        assert "content" not in document
        assert resolved["sample_content"] == {"summary": "Seasoned engineer."}
        assert document["custom_css"] == ".name { color: red; }"

    def test_empty_patch_returns_resolved_document(self, template):
        resolved = resolve_template(template["id"])

        assert apply_customization(resolved, {}) == resolved

    def test_malformed_patch(self, template):
        resolved = resolve_template(template["id"])

        with pytest.raises(ValidationError):
            apply_customization(resolved, {"colorChanges": {"primaryColour": "#000"}})


class TestSaveCustomization:
    """Tests for saving and reading customizations."""

    def test_save_records_template_version(self, template, regular_user):
        saved = save_customization(
            regular_user["id"],
            template["id"],
            {"colorChanges": {"primary": "#0000FF"}},
            custom_name="Blue",
        )

        assert saved["user_id"] == regular_user["id"]
        assert saved["custom_name"] == "Blue"
        assert saved["base_template_version"] == "1.0.0"
        assert saved["customizations"] == {"colorChanges": {"primary": "#0000FF"}}
        assert saved["times_used"] == 0

    def test_update_own_customization(self, template, regular_user):
        saved = save_customization(regular_user["id"], template["id"], {})

        updated = save_customization(
            regular_user["id"],
            template["id"],
            {"customCSS": "body {}"},
            customization_id=saved["id"],
        )

        assert updated["id"] == saved["id"]
        assert updated["customizations"] == {"customCSS": "body {}"}

    def test_cannot_update_someone_elses(self, template, regular_user, other_user):
        saved = save_customization(regular_user["id"], template["id"], {})

        with pytest.raises(ForbiddenError):
            save_customization(
                other_user["id"], template["id"], {}, customization_id=saved["id"]
            )

    def test_cannot_move_to_another_template(self, template, template_payload, regular_user):
        other = create_template({**template_payload, "name": "Other"})
        saved = save_customization(regular_user["id"], template["id"], {})

        with pytest.raises(MismatchError):
            save_customization(regular_user["id"], other["id"], {}, customization_id=saved["id"])

    def test_inactive_template_cannot_be_customized(self, template, regular_user):
        delete_template(template["id"])

        with pytest.raises(NotFoundError):
            save_customization(regular_user["id"], template["id"], {})

    def test_unknown_user(self, template):
        with pytest.raises(NotFoundError):
            save_customization("ghost", template["id"], {})

    def test_read_and_delete_are_owner_only(self, template, regular_user, other_user):
        saved = save_customization(regular_user["id"], template["id"], {})

        with pytest.raises(ForbiddenError):
            get_customization(other_user["id"], saved["id"])
        with pytest.raises(ForbiddenError):
            delete_customization(other_user["id"], saved["id"])

        delete_customization(regular_user["id"], saved["id"])
        with pytest.raises(NotFoundError):
            get_customization(regular_user["id"], saved["id"])

    def test_list_only_returns_own(self, template, regular_user, other_user):
        save_customization(regular_user["id"], template["id"], {})
        save_customization(other_user["id"], template["id"], {})

        mine = list_customizations(regular_user["id"])

        assert len(mine) == 1
        assert mine[0]["user_id"] == regular_user["id"]


class TestSharing:
    """Tests for share grants and share tokens."""

    def test_view_grant_allows_reading(self, template, regular_user, other_user):
        saved = save_customization(regular_user["id"], template["id"], {})

        shared = share_customization(
            regular_user["id"],
            saved["id"],
            [{"user_id": other_user["id"], "permissions": ["view"]}],
        )

        assert shared["is_shared"] is True
        assert shared["share_token"]
        assert shared["shared_with"][0]["userId"] == other_user["id"]
        assert get_customization(other_user["id"], saved["id"])["id"] == saved["id"]
        assert get_shared_customization(shared["share_token"])["id"] == saved["id"]

    def test_share_token_is_stable(self, template, regular_user, other_user):
        saved = save_customization(regular_user["id"], template["id"], {})
        grant = [{"user_id": other_user["id"], "permissions": ["view"]}]

        first = share_customization(regular_user["id"], saved["id"], grant)
        second = share_customization(regular_user["id"], saved["id"], grant)

        assert first["share_token"] == second["share_token"]

    def test_unknown_permission(self, template, regular_user, other_user):
        saved = save_customization(regular_user["id"], template["id"], {})

        with pytest.raises(ValidationError):
            share_customization(
                regular_user["id"],
                saved["id"],
                [{"user_id": other_user["id"], "permissions": ["delete"]}],
            )

    def test_unknown_token(self):
        with pytest.raises(NotFoundError):
            get_shared_customization("nope")


class TestRenderEffectiveDocument:
    """Tests for the document a user actually sees."""

    def test_without_customization_returns_resolved(self, template, regular_user):
        document = render_effective_document(regular_user["id"], template["id"])

        assert document == resolve_template(template["id"])

    def test_overlay_and_usage_tracking(self, template, regular_user):
        saved = save_customization(
            regular_user["id"], template["id"], {"colorChanges": {"primary": "#0000FF"}}
        )

        document = render_effective_document(regular_user["id"], template["id"], saved["id"])
        render_effective_document(regular_user["id"], template["id"], saved["id"])

        assert document["design_config"]["colors"]["primary"] == "#0000FF"
        assert document["customization_id"] == saved["id"]
        stored = get_customization(regular_user["id"], saved["id"])
        assert stored["times_used"] == 2
        assert stored["last_used_at"] is not None
        # The template row is never modified by a customization
        assert resolve_template(template["id"])["design_config"]["colors"]["primary"] == "#333333"

    def test_customization_of_another_template(self, template, template_payload, regular_user):
        other = create_template({**template_payload, "name": "Other"})
        saved = save_customization(regular_user["id"], other["id"], {})

        with pytest.raises(MismatchError):
            render_effective_document(regular_user["id"], template["id"], saved["id"])

    def test_private_customization_of_another_user(self, template, regular_user, other_user):
        saved = save_customization(regular_user["id"], template["id"], {})

        with pytest.raises(ForbiddenError):
            render_effective_document(other_user["id"], template["id"], saved["id"])
