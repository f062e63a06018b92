"""Append-only log of user interactions with templates."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from template_studio.data.db import Base

if TYPE_CHECKING:
    from template_studio.data.models.user import User


class TemplateUsageEvent(Base):
    """One tracked action (preview, select, customize, export, duplicate).

    Events are never updated or deleted individually; analytics are derived
    from them by aggregation.
    """

    __tablename__ = "template_usage"
    __table_args__ = (
        Index("template_usage_template_action_idx", "template_id", "action_type"),
        Index("template_usage_user_action_idx", "user_id", "action_type"),
        Index("template_usage_created_at_idx", "created_at"),
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
    customization_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("user_template_customizations.id", ondelete="SET NULL"),
        nullable=True,
    )

    document_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    document_type: Mapped[str] = mapped_column(String(32), nullable=False)
    action_type: Mapped[str] = mapped_column(String(16), nullable=False)

    # Client context
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    browser_info: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    # Performance
    load_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    render_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    interaction_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Engagement
    time_on_page_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scroll_depth_percent: Mapped[int | None] = mapped_column(Integer, nullable=True)
    clicks_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Feedback
    user_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Conversion
    converted_to_document: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    conversion_time_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    template_version: Mapped[str | None] = mapped_column(String(64), nullable=True)
    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    user: Mapped[User] = relationship("User", back_populates="usage_events")
