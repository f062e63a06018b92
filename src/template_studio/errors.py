"""Typed failures raised by the template services.

The API layer maps each class to an HTTP status code; services never return
``None`` to signal failure.
"""

from __future__ import annotations

from typing import Any


class TemplateStudioError(Exception):
    """Base class for every domain failure."""

    code = "TEMPLATE_STUDIO_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "detail": self.message, "details": self.details}


class NotFoundError(TemplateStudioError):
    """A referenced template, version, customization, tag or collection is missing."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} '{identifier}' not found", {"kind": kind, "id": identifier})


class ValidationError(TemplateStudioError):
    """A structural invariant of a template document was violated."""

    code = "VALIDATION_FAILED"

    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__("; ".join(self.issues) or "Invalid input", {"issues": self.issues})


class DependencyError(TemplateStudioError):
    """A hard delete is blocked by children, variants or customizations."""

    code = "HAS_DEPENDENCIES"


class ForbiddenError(TemplateStudioError):
    """The caller does not own the row or lacks the admin role."""

    code = "FORBIDDEN"


class CycleError(TemplateStudioError):
    """The parent chain of a template loops back on itself or is too deep."""

    code = "INHERITANCE_CYCLE"

    def __init__(self, message: str, chain: list[str]) -> None:
        self.chain = list(chain)
        super().__init__(message, {"chain": self.chain})


class MismatchError(TemplateStudioError):
    """A version was applied to a template it does not belong to."""

    code = "VERSION_MISMATCH"
