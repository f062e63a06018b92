"""Current user routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from template_studio.api.dependencies import get_current_user_id
from template_studio.api.schemas.users import UserInfoResponse
from template_studio.services.users import get_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserInfoResponse)
def get_current_user_info(
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> UserInfoResponse:
    """Get the calling user's mirrored account.

    Raises:
        NotFoundError: If the user has not been mirrored yet (404).
    """
    return UserInfoResponse(**get_user(user_id))
