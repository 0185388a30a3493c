"""Result schemas for record persistence and lookup."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

NOT_FOUND = "not_found"
SYSTEM_OF_RECORD = "system_of_record"


class PersistResult(BaseModel):
    """Outcome of writing video URLs onto a target record."""

    success: bool = False
    method: str = NOT_FOUND
    collection: str | None = None
    message: str = ""
    matched_count: int = 0
    modified_count: int = 0
    # Diagnostics, filled in only when nothing matched
    object_id_valid: bool | None = None
    sample_documents: list[dict[str, Any]] = Field(default_factory=list)


class LookupResult(BaseModel):
    """Read-only lookup of a record across the known storage shapes."""

    found: bool = False
    method: str = NOT_FOUND
    collection: str | None = None
    record_id: str = ""
    document: dict[str, Any] | None = None
    strategies_tried: list[str] = Field(default_factory=list)
