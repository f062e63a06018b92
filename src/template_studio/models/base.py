"""Common configuration for the JSON documents stored on templates."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Strict record: camelCase keys on the wire, unknown keys rejected."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel)

    def to_document(self) -> dict:
        """Dump back to the stored JSON shape, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_unset=True)
