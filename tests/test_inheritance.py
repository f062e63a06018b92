"""Tests for the inheritance resolver."""

from __future__ import annotations

import pytest

from template_studio.constants import MAX_INHERITANCE_DEPTH
from template_studio.data.db import get_session
from template_studio.data.models import Template
from template_studio.errors import CycleError, NotFoundError, ValidationError
from template_studio.services.inheritance import (
    exceeds_depth_limit,
    merge_documents,
    resolve_template,
    subtree_height,
    would_create_cycle,
)
from template_studio.services.template_store import create_template, update_template


def _child_payload(parent_id: str, name: str = "Blue Resume", **design) -> dict:
    return {
        "name": name,
        "category": "modern",
        "document_type": "resume",
        "parent_template_id": parent_id,
        "design_config": {"colors": design or {"primary": "#0000FF"}},
    }


class TestMergeDocuments:
    """Tests for the pure document merge."""

    def test_nested_dicts_merge_key_by_key(self):
        base = {"colors": {"primary": "#000", "text": "#111"}, "spacing": {"sectionSpacing": 4}}
        merged = merge_documents(base, {"colors": {"primary": "#FFF"}})

        assert merged == {
            "colors": {"primary": "#FFF", "text": "#111"},
            "spacing": {"sectionSpacing": 4},
        }

    def test_lists_are_replaced(self):
        merged = merge_documents({"sections": [1, 2, 3]}, {"sections": [4]})
        assert merged["sections"] == [4]

    def test_none_keeps_base_value(self):
        merged = merge_documents({"accent": "#123"}, {"accent": None})
        assert merged == {"accent": "#123"}

    def test_inputs_are_not_mutated(self):
        base = {"colors": {"primary": "#000"}}
        override = {"colors": {"primary": "#FFF"}}
        merge_documents(base, override)

        assert base == {"colors": {"primary": "#000"}}
        assert override == {"colors": {"primary": "#FFF"}}


class TestResolveTemplate:
    """Tests for resolve_template."""

    def test_root_template_resolves_to_its_own_documents(self, template_payload):
        base = create_template(template_payload)

        resolved = resolve_template(base["id"])

        assert resolved["template_structure"] == template_payload["template_structure"]
        assert resolved["design_config"] == template_payload["design_config"]
        assert resolved["lineage"] == [base["id"]]

    def test_child_overrides_set_fields_and_inherits_the_rest(self, template_payload):
        base = create_template(template_payload)
        blue = create_template(_child_payload(base["id"]))

        resolved = resolve_template(blue["id"])

        assert resolved["design_config"]["colors"]["primary"] == "#0000FF"
        assert resolved["design_config"]["colors"]["text"] == "#111111"
        assert resolved["design_config"]["typography"] == template_payload["design_config"][
            "typography"
        ]
        assert resolved["template_structure"] == template_payload["template_structure"]
        assert resolved["name"] == "Blue Resume"
        assert resolved["category"] == "modern"
        assert resolved["lineage"] == [base["id"], blue["id"]]

    def test_three_level_chain_applies_closest_override(self, template_payload):
        base = create_template(template_payload)
        middle = create_template(_child_payload(base["id"], "Middle", primary="#00FF00"))
        leaf = create_template(
            _child_payload(middle["id"], "Leaf", background="#EEEEEE")
        )

        colors = resolve_template(leaf["id"])["design_config"]["colors"]

        assert colors["primary"] == "#00FF00"
        assert colors["background"] == "#EEEEEE"
        assert colors["text"] == "#111111"

    def test_base_template_id_is_not_walked(self, template_payload, structure, design):
        base = create_template({**template_payload, "is_base_template": True})
        design["colors"]["primary"] = "#ABCDEF"
        variant = create_template(
            {
                **template_payload,
                "name": "Variant",
                "base_template_id": base["id"],
                "is_variant": True,
                "variant_type": "color",
                "design_config": design,
            }
        )

        resolved = resolve_template(variant["id"])

        assert resolved["lineage"] == [variant["id"]]
        assert resolved["design_config"]["colors"]["primary"] == "#ABCDEF"

    def test_unknown_template_raises_not_found(self):
        with pytest.raises(NotFoundError):
            resolve_template("missing-id")

    def test_corrupt_cycle_raises_instead_of_hanging(self, template_payload):
        first = create_template(template_payload)
        second = create_template(_child_payload(first["id"]))
        with get_session() as session:
            session.get(Template, first["id"]).parent_template_id = second["id"]

        with pytest.raises(CycleError) as exc_info:
            resolve_template(second["id"])

        assert exc_info.value.chain[0] == exc_info.value.chain[-1]


class TestCycleRejection:
    """Tests for refusing parent links that would loop."""

    def test_reparenting_onto_descendant_is_rejected(self, template_payload):
        base = create_template(template_payload)
        child = create_template(_child_payload(base["id"]))

        with pytest.raises(CycleError):
            update_template(base["id"], {"parent_template_id": child["id"]})

        # Nothing was written
        assert resolve_template(base["id"])["lineage"] == [base["id"]]

    def test_would_create_cycle(self, template_payload):
        base = create_template(template_payload)
        child = create_template(_child_payload(base["id"]))
        other = create_template({**template_payload, "name": "Other"})

        with get_session() as session:
            assert would_create_cycle(session, base["id"], base["id"]) is True
            assert would_create_cycle(session, base["id"], child["id"]) is True
            assert would_create_cycle(session, other["id"], child["id"]) is False


def _chain(template_payload, length: int) -> list[dict]:
    """A root plus children, ``length`` templates deep."""
    chain = [create_template(template_payload)]
    for level in range(1, length):
        chain.append(create_template(_child_payload(chain[-1]["id"], f"Level {level}")))
    return chain


class TestDepthLimit:
    """Tests for keeping chains within MAX_INHERITANCE_DEPTH."""

    def test_deepest_allowed_chain_resolves(self, template_payload):
        chain = _chain(template_payload, MAX_INHERITANCE_DEPTH)

        resolved = resolve_template(chain[-1]["id"])

        assert len(resolved["lineage"]) == MAX_INHERITANCE_DEPTH

    def test_child_of_deepest_template_is_rejected(self, template_payload):
        chain = _chain(template_payload, MAX_INHERITANCE_DEPTH)

        with pytest.raises(ValidationError) as exc_info:
            create_template(_child_payload(chain[-1]["id"], "Too Deep"))

        assert exc_info.value.issues == [
            f"Inheritance chain would exceed {MAX_INHERITANCE_DEPTH} levels"
        ]

    def test_reparenting_counts_descendants(self, template_payload):
        chain = _chain(template_payload, MAX_INHERITANCE_DEPTH - 1)
        other = create_template({**template_payload, "name": "Other"})
        create_template(_child_payload(other["id"], "Other Child"))

        with pytest.raises(ValidationError):
            update_template(other["id"], {"parent_template_id": chain[-1]["id"]})

        assert resolve_template(other["id"])["lineage"] == [other["id"]]

    def test_reparenting_within_limit(self, template_payload):
        chain = _chain(template_payload, MAX_INHERITANCE_DEPTH - 2)
        other = create_template({**template_payload, "name": "Other"})
        leaf = create_template(_child_payload(other["id"], "Other Child"))

        update_template(other["id"], {"parent_template_id": chain[-1]["id"]})

        assert len(resolve_template(leaf["id"])["lineage"]) == MAX_INHERITANCE_DEPTH

    def test_subtree_height_and_limit_check(self, template_payload):
        chain = _chain(template_payload, 3)

        with get_session() as session:
            assert subtree_height(session, chain[0]["id"]) == 3
            assert subtree_height(session, chain[-1]["id"]) == 1
            assert exceeds_depth_limit(session, chain[-1]["id"]) is False
