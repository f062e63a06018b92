"""ORM models package for database tables.

This package provides SQLAlchemy ORM models representing database tables:
- User: Account that owns customizations and usage events
- Template: Platform-owned document template with inheritance links
- TemplateVersion: Immutable snapshot in a template's version ledger
- TemplateCustomization: A user's sparse override patch for a template
- TemplateUsageEvent: Append-only interaction log driving analytics
- TemplateTag / TemplateTagRelation: Tag catalogue and assignments
- TemplateCollection / TemplateCollectionItem: Curated template groups

All models inherit from the shared Base declarative class defined in data.db.
"""

from template_studio.data.db import Base
from template_studio.data.models.collection import TemplateCollection, TemplateCollectionItem
from template_studio.data.models.customization import TemplateCustomization
from template_studio.data.models.tag import TemplateTag, TemplateTagRelation
from template_studio.data.models.template import Template
from template_studio.data.models.template_version import TemplateVersion
from template_studio.data.models.usage_event import TemplateUsageEvent
from template_studio.data.models.user import User

__all__ = [
    "Base",
    "Template",
    "TemplateCollection",
    "TemplateCollectionItem",
    "TemplateCustomization",
    "TemplateTag",
    "TemplateTagRelation",
    "TemplateUsageEvent",
    "TemplateVersion",
    "User",
]
