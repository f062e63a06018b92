"""User mirror service.

Accounts are provisioned by the identity provider; this module only mirrors
them so ownership and admin checks have a row to look at, and lets admins
search them and grant or revoke the admin flag.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, TypedDict

from sqlalchemy import func, or_

from template_studio.constants import DEFAULT_LIMIT, MAX_LIMIT
from template_studio.data.db import get_session
from template_studio.data.models import TemplateCustomization, TemplateUsageEvent, User
from template_studio.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

__all__ = ["UserFilters", "create_user", "get_user", "list_users", "set_admin"]

_SORT_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "created": User.created_at,
}


class UserFilters(TypedDict, total=False):
    """Filters accepted by list_users."""

    search: str
    is_admin: bool
    registered_after: datetime
    registered_before: datetime
    sort_by: str
    sort_order: str
    limit: int
    offset: int


def _user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "is_admin": user.is_admin,
        "created_at": user.created_at,
    }


def create_user(
    name: str, email: str, is_admin: bool = False, user_id: str | None = None
) -> dict[str, Any]:
    """Register a user mirrored from the identity provider.

    Raises:
        ValidationError: If the email or id is already registered.
    """
    with get_session() as session:
        if session.query(User).filter(User.email == email).first() is not None:
            raise ValidationError([f"Email '{email}' is already registered"])
        if user_id and session.get(User, user_id) is not None:
            raise ValidationError([f"User '{user_id}' is already registered"])
        user = User(name=name, email=email, is_admin=is_admin)
        if user_id:
            user.id = user_id
        session.add(user)
        session.flush()
        logger.info("Registered user %s (admin=%s)", user.id, is_admin)
        return _user_to_dict(user)


def get_user(user_id: str) -> dict[str, Any]:
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return _user_to_dict(user)


def list_users(filters: UserFilters | None = None) -> dict[str, Any]:
    """Search mirrored users for the admin console.

    Each user carries ``customization_count`` and ``usage_event_count``.

    Returns:
        Dictionary with ``users`` (one page) and ``total_count`` (all matches)
    """
    filters = filters or {}
    sort_by = filters.get("sort_by", "created")
    if sort_by not in _SORT_COLUMNS:
        raise ValidationError([f"sort_by must be one of {', '.join(_SORT_COLUMNS)}"])
    limit = min(filters.get("limit", DEFAULT_LIMIT), MAX_LIMIT)
    offset = filters.get("offset", 0)

    with get_session() as session:
        query = session.query(User)
        if filters.get("search"):
            pattern = f"%{filters['search']}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if filters.get("is_admin") is not None:
            query = query.filter(User.is_admin.is_(filters["is_admin"]))
        if filters.get("registered_after"):
            query = query.filter(User.created_at >= filters["registered_after"])
        if filters.get("registered_before"):
            query = query.filter(User.created_at <= filters["registered_before"])

        total = query.count()
        column = _SORT_COLUMNS[sort_by]
        order = column.asc() if filters.get("sort_order") == "asc" else column.desc()
        users = query.order_by(order, User.id).offset(offset).limit(limit).all()

        ids = [user.id for user in users]
        customizations = dict(
            session.query(TemplateCustomization.user_id, func.count(TemplateCustomization.id))
            .filter(TemplateCustomization.user_id.in_(ids))
            .group_by(TemplateCustomization.user_id)
            .all()
        )
        events = dict(
            session.query(TemplateUsageEvent.user_id, func.count(TemplateUsageEvent.id))
            .filter(TemplateUsageEvent.user_id.in_(ids))
            .group_by(TemplateUsageEvent.user_id)
            .all()
        )

        return {
            "users": [
                {
                    **_user_to_dict(user),
                    "customization_count": customizations.get(user.id, 0),
                    "usage_event_count": events.get(user.id, 0),
                }
                for user in users
            ],
            "total_count": total,
        }


def set_admin(user_id: str, is_admin: bool, changed_by: str | None = None) -> dict[str, Any]:
    """Grant or revoke the admin flag.

    Raises:
        NotFoundError: If the user does not exist.
        ValidationError: If an admin tries to revoke their own flag.
    """
    if changed_by == user_id and not is_admin:
        raise ValidationError(["Admins cannot revoke their own admin access"])
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        user.is_admin = is_admin
        logger.info("User %s admin=%s (changed by %s)", user_id, is_admin, changed_by)
        return _user_to_dict(user)
