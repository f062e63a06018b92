"""Inheritance resolver.

A template with a ``parent_template_id`` stores only the parts of its
structure and design that differ from its parent. Resolving walks the parent
chain to the root and layers each template's documents over its ancestor's,
producing a self-contained document.

``base_template_id`` records which design a variant came from. It is lineage
only and never takes part in resolution.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from sqlalchemy.orm import Session

from template_studio.constants import MAX_INHERITANCE_DEPTH
from template_studio.data.db import get_session
from template_studio.data.models import Template
from template_studio.errors import CycleError, NotFoundError

logger = logging.getLogger(__name__)

__all__ = [
    "exceeds_depth_limit",
    "load_chain",
    "merge_documents",
    "resolve_in_session",
    "resolve_template",
    "subtree_height",
    "would_create_cycle",
]

# Documents layered during resolution, in the order they appear in the output.
_MERGED_DOCUMENTS = ("template_structure", "design_config", "sample_content")


def merge_documents(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` layered on top.

    Nested dicts merge key by key; any other value in ``override`` (lists
    included) replaces the one in ``base``. ``None`` means "not set" and
    keeps the base value. Neither argument is modified.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_documents(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_chain(session: Session, template_id: str) -> list[Template]:
    """Load a template and its ancestors, ordered root first.

    Raises:
        NotFoundError: If the template or any ancestor is missing.
        CycleError: If an ancestor repeats or the chain exceeds
            ``MAX_INHERITANCE_DEPTH``.
    """
    chain: list[Template] = []
    visited: list[str] = []
    current_id: str | None = template_id

    while current_id is not None:
        if current_id in visited:
            visited.append(current_id)
            logger.warning("Inheritance cycle detected: %s", " -> ".join(visited))
            raise CycleError(
                f"Inheritance cycle detected: {' -> '.join(visited)}",
                visited,
            )
        if len(visited) >= MAX_INHERITANCE_DEPTH:
            raise CycleError(
                f"Inheritance chain of '{template_id}' exceeds {MAX_INHERITANCE_DEPTH} levels",
                visited,
            )
        visited.append(current_id)

        template = session.get(Template, current_id)
        if template is None:
            kind = "Template" if current_id == template_id else "Parent template"
            raise NotFoundError(kind, current_id)

        chain.append(template)
        current_id = template.parent_template_id

    chain.reverse()
    return chain


def resolve_in_session(session: Session, template_id: str) -> dict[str, Any]:
    """Resolve a template using an already open session."""
    chain = load_chain(session, template_id)
    leaf = chain[-1]

    documents: dict[str, dict[str, Any]] = {name: {} for name in _MERGED_DOCUMENTS}
    for template in chain:
        for name in _MERGED_DOCUMENTS:
            documents[name] = merge_documents(documents[name], getattr(template, name) or {})

    return {
        "id": leaf.id,
        "name": leaf.name,
        "description": leaf.description,
        "category": leaf.category,
        "document_type": leaf.document_type,
        "version": leaf.version,
        "tags": list(leaf.tags or []),
        **documents,
        "lineage": [template.id for template in chain],
    }


def resolve_template(template_id: str) -> dict[str, Any]:
    """Compute the effective document of a template.

    Args:
        template_id: ID of the template to resolve

    Returns:
        Dictionary with the leaf template's identity, the merged
        ``template_structure``, ``design_config`` and ``sample_content``, and
        ``lineage`` (template ids from root to leaf).

    Raises:
        NotFoundError: If the template or an ancestor does not exist.
        CycleError: If the parent chain loops or is too deep.
    """
    with get_session() as session:
        return resolve_in_session(session, template_id)


def would_create_cycle(session: Session, template_id: str, new_parent_id: str) -> bool:
    """Whether making ``new_parent_id`` the parent of ``template_id`` would loop.

    Walks up from the proposed parent; reaching ``template_id`` (or an
    already broken chain) means the link must be refused.
    """
    visited: set[str] = set()
    current_id: str | None = new_parent_id
    while current_id is not None:
        if current_id == template_id or current_id in visited:
            return True
        if len(visited) >= MAX_INHERITANCE_DEPTH:
            return True
        visited.add(current_id)
        parent = session.get(Template, current_id)
        if parent is None:
            return False
        current_id = parent.parent_template_id
    return False


def subtree_height(session: Session, template_id: str) -> int:
    """Number of levels from ``template_id`` down to its deepest descendant.

    A template without children has height 1. Counting stops once the height
    passes ``MAX_INHERITANCE_DEPTH``.
    """
    height = 0
    level = [template_id]
    while level and height <= MAX_INHERITANCE_DEPTH:
        height += 1
        rows = session.query(Template.id).filter(Template.parent_template_id.in_(level)).all()
        level = [row.id for row in rows]
    return height


def exceeds_depth_limit(
    session: Session, new_parent_id: str, template_id: str | None = None
) -> bool:
    """Whether hanging ``template_id`` under ``new_parent_id`` makes a chain too deep.

    ``template_id`` is None for a template that does not exist yet. Its
    descendants move with it, so the deepest of them decides. Call after
    ``would_create_cycle`` has ruled out a loop.
    """
    parent_depth = len(load_chain(session, new_parent_id))
    height = subtree_height(session, template_id) if template_id else 1
    return parent_depth + height > MAX_INHERITANCE_DEPTH
