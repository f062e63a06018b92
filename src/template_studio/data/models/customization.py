"""Per-user template customizations (sparse override patches)."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from template_studio.data.db import Base

if TYPE_CHECKING:
    from template_studio.data.models.template import Template
    from template_studio.data.models.user import User


class TemplateCustomization(Base):
    """A user's override patch on top of a resolved template.

    Attributes:
        customizations: Patch document keyed by dimension (colorChanges, ...).
        shared_with: List of ``{"userId", "permissions", "sharedAt"}`` grants.
        base_template_version: Template version the patch was authored against.
    """

    __tablename__ = "user_template_customizations"
    __table_args__ = (
        Index("user_customizations_user_template_idx", "user_id", "template_id"),
        Index("user_customizations_last_used_idx", "last_used_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    template_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("document_templates.id", ondelete="CASCADE"), nullable=False
    )

    custom_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    customizations: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    times_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    share_token: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    shared_with: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    base_template_version: Mapped[str | None] = mapped_column(String(64), nullable=True)

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
    user: Mapped[User] = relationship("User", back_populates="customizations")
    template: Mapped[Template] = relationship("Template")
