"""Usage event routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from template_studio.api.dependencies import get_current_user_id
from template_studio.api.schemas.usage import UsageEventRequest, UsageEventResponse
from template_studio.services.usage import record_event

router = APIRouter(prefix="/usage", tags=["usage"])


@router.post(
    "/events",
    response_model=UsageEventResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_event_endpoint(
    data: UsageEventRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> UsageEventResponse:
    """Record a template interaction for the caller."""
    event = {**data.model_dump(exclude_none=True), "user_id": user_id}
    return UsageEventResponse(**record_event(event))
