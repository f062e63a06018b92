"""Caller identity and admin gate shared by the API routes.

The identity provider sits in front of this service and forwards the
authenticated user id in the ``X-User-Id`` header.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from template_studio.data.db import get_session
from template_studio.data.models import User


def get_current_user_id(
    x_user_id: Annotated[
        str | None,
        Header(description="Id of the authenticated user, set by the identity provider."),
    ] = None,
) -> str:
    """Id of the calling user.

    Raises:
        HTTPException: If the ``X-User-Id`` header is missing (401).
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication. Please provide X-User-Id header.",
        )
    return x_user_id


def get_optional_user_id(
    x_user_id: Annotated[str | None, Header(description="Current user id, if any.")] = None,
) -> str | None:
    """Get the current user id if provided, or None for anonymous access."""
    return x_user_id or None


def require_admin(user_id: Annotated[str, Depends(get_current_user_id)]) -> str:
    """Allow only users flagged ``is_admin``.

    Raises:
        HTTPException: If the user is unknown or not an admin (403).
    """
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None or not user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required",
            )
    return user_id
