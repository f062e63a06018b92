"""Admin user routes for the API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Path, Query, status

from template_studio.api.dependencies import require_admin
from template_studio.api.schemas.common import DEFAULT_LIMIT, MAX_LIMIT, PaginationMeta
from template_studio.api.schemas.users import (
    UserCreateRequest,
    UserInfoResponse,
    UserListResponse,
    UserRoleRequest,
    UserSummaryResponse,
)
from template_studio.services.users import create_user, get_user, list_users, set_admin

router = APIRouter(prefix="/admin/users", tags=["admin-users"])

UserId = Annotated[str, Path(description="User ID")]
AdminId = Annotated[str, Depends(require_admin)]


@router.get("", response_model=UserListResponse)
def list_users_endpoint(
    _admin: AdminId,
    search: str | None = None,
    is_admin: bool | None = None,
    registered_after: datetime | None = None,
    registered_before: datetime | None = None,
    sort_by: Literal["name", "email", "created"] = "created",
    sort_order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> UserListResponse:
    """Search mirrored users with their customization and event counts."""
    filters = {
        key: value
        for key, value in {
            "search": search,
            "is_admin": is_admin,
            "registered_after": registered_after,
            "registered_before": registered_before,
        }.items()
        if value is not None
    }
    result = list_users(
        {**filters, "sort_by": sort_by, "sort_order": sort_order, "limit": limit, "offset": offset}
    )
    total = result["total_count"]
    return UserListResponse(
        users=[UserSummaryResponse(**user) for user in result["users"]],
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(result["users"]) < total,
        ),
    )


@router.post("", response_model=UserInfoResponse, status_code=status.HTTP_201_CREATED)
def create_user_endpoint(data: UserCreateRequest, _admin: AdminId) -> UserInfoResponse:
    """Mirror an account from the identity provider."""
    user = create_user(data.name, data.email, is_admin=data.is_admin, user_id=data.id)
    return UserInfoResponse(**user)


@router.get("/{user_id}", response_model=UserInfoResponse)
def get_user_endpoint(user_id: UserId, _admin: AdminId) -> UserInfoResponse:
    return UserInfoResponse(**get_user(user_id))


@router.patch("/{user_id}/role", response_model=UserInfoResponse)
def set_role_endpoint(
    user_id: UserId, data: UserRoleRequest, admin_id: AdminId
) -> UserInfoResponse:
    """Grant or revoke admin access."""
    return UserInfoResponse(**set_admin(user_id, data.is_admin, changed_by=admin_id))
