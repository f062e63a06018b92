"""User account model.

Authentication happens outside this service; the table exists so that
customizations and usage events can be owned and cascade-deleted.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from template_studio.data.db import Base

if TYPE_CHECKING:
    from template_studio.data.models.customization import TemplateCustomization
    from template_studio.data.models.usage_event import TemplateUsageEvent


class User(Base):
    """Application user.

    Attributes:
        id: UUID primary key issued by the identity provider.
        name: Display name.
        email: Unique email address.
        is_admin: Whether the user may mutate platform-owned templates.
        created_at: UTC timestamp when the account was created.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    customizations: Mapped[list[TemplateCustomization]] = relationship(
        "TemplateCustomization", back_populates="user", cascade="all, delete-orphan"
    )
    usage_events: Mapped[list[TemplateUsageEvent]] = relationship(
        "TemplateUsageEvent", back_populates="user", cascade="all, delete-orphan"
    )
