"""Version ledger entries: immutable snapshots of a template."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from template_studio.data.db import Base

if TYPE_CHECKING:
    from template_studio.data.models.template import Template


class TemplateVersion(Base):
    """Point-in-time copy of a template's content and design.

    Rows are append-only. Only ``is_published``/``published_at`` change after
    insert, and at most one row per template is published.
    """

    __tablename__ = "template_versions"
    __table_args__ = (Index("template_versions_template_idx", "template_id", "version_number"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    template_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("document_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    version_number: Mapped[str] = mapped_column(String(64), nullable=False)
    version_type: Mapped[str] = mapped_column(String(16), nullable=False, default="minor")

    snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    changelog_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_breaking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deprecated_features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    migration_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    backward_compatible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    template: Mapped[Template] = relationship("Template", back_populates="versions")
