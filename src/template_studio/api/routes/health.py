"""Health check routes."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from template_studio.data.db import get_session

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict[str, str]:
    """Report API liveness and whether the template database answers."""
    with get_session() as session:
        session.execute(text("SELECT 1"))
    return {"status": "healthy", "database": "ok"}
