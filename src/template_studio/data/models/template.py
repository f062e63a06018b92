"""Document template model.

A template is the platform-owned definition of a resume, CV or cover letter
layout. ``template_structure`` and ``design_config`` are nested JSON
documents; for a template with a parent they hold only the overrides.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from template_studio.data.db import Base

if TYPE_CHECKING:
    from template_studio.data.models.template_version import TemplateVersion


class Template(Base):
    """Template definition with inheritance links, lifecycle flags and cached metrics.

    Attributes:
        parent_template_id: Template whose resolved document this one overrides.
        base_template_id: Design root this template is a variant of (lineage only).
        usage_count: Incremented in place on every use.
        avg_rating: Running mean of user ratings, maintained with ``total_ratings``.
    """

    __tablename__ = "document_templates"
    __table_args__ = (
        Index("templates_category_idx", "category"),
        Index("templates_active_idx", "is_active"),
        Index("templates_document_type_idx", "document_type"),
        Index("templates_featured_idx", "is_featured", "featured_order"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    document_type: Mapped[str] = mapped_column(String(32), nullable=False)

    # Inheritance
    parent_template_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("document_templates.id"), nullable=True, index=True
    )
    base_template_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("document_templates.id"), nullable=True, index=True
    )
    is_base_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_variant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    variant_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    variant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Documents
    template_structure: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    design_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    sample_content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    component_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    component_version: Mapped[str] = mapped_column(String(32), nullable=False, default="1.0.0")

    # Targeting and discovery
    target_specializations: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    target_industries: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    target_experience_level: Mapped[str | None] = mapped_column(String(32), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    search_keywords: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lifecycle
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    featured_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    quality_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    version: Mapped[str] = mapped_column(String(64), nullable=False, default="1.0.0")

    # Cached metrics, written by aggregate jobs
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_ratings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    conversion_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completion_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    export_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    versions: Mapped[list[TemplateVersion]] = relationship(
        "TemplateVersion",
        back_populates="template",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
