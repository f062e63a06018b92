"""FastAPI application entry point for the Template Studio API."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

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
from template_studio.errors import (
    CycleError,
    DependencyError,
    ForbiddenError,
    MismatchError,
    NotFoundError,
    TemplateStudioError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

# Domain error -> HTTP status; the first matching class wins.
_STATUS_CODES: tuple[tuple[type[TemplateStudioError], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (DependencyError, 409),
    (ForbiddenError, 403),
    (CycleError, 409),
    (MismatchError, 409),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup and clean up on shutdown."""
    from template_studio.data.db import init_db

    init_db()
    yield


app = FastAPI(
    title="Template Studio API",
    description="Template store, version ledger and customization service for document builders",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TemplateStudioError)
async def template_studio_error_handler(request: Request, exc: TemplateStudioError):
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 400)
    if status_code >= 409:
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


app.include_router(health.router)
app.include_router(admin_templates.router, prefix="/api")
app.include_router(admin_versions.router, prefix="/api")
app.include_router(admin_tags.router, prefix="/api")
app.include_router(admin_collections.router, prefix="/api")
app.include_router(admin_analytics.router, prefix="/api")
app.include_router(admin_users.router, prefix="/api")
app.include_router(catalog.router, prefix="/api")
app.include_router(customizations.router, prefix="/api")
app.include_router(usage.router, prefix="/api")
app.include_router(users.router, prefix="/api")


def main() -> None:
    """Start the development server."""
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "template_studio.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    main()
