"""Route handlers for the API."""

from template_studio.api.routes import (
    admin_analytics,
    admin_collections,
    admin_tags,
    admin_templates,
    admin_users,
    admin_versions,
    catalog,
    customizations,
    health,
    usage,
    users,
)

__all__ = [
    "health",
    "admin_templates",
    "admin_versions",
    "admin_tags",
    "admin_collections",
    "admin_analytics",
    "catalog",
    "customizations",
    "usage",
    "admin_users",
    "users",
]
