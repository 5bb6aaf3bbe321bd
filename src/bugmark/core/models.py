"""Pydantic models for remembered source locations."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Keys that make a persisted mapping a location rather than a folder
REQUIRED_FACT_KEYS = frozenset({"file", "lineno", "content"})


class LocationFact(BaseModel):
    """A remembered source line: where it was, what it said, and as of which commit."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True, extra="forbid")

    file: str
    lineno: int = Field(ge=0)  # 0-indexed
    content: str
    # Older stores wrote the commit as "githash"
    revision: str | None = Field(
        default=None,
        validation_alias=AliasChoices("revision", "githash"),
    )
    deleted: bool | None = None

    @property
    def is_stale(self) -> bool:
        """True when the last fuzzy search failed to find the line."""
        return bool(self.deleted)

    def to_record(self) -> dict[str, Any]:
        """Persistable mapping; unset optional fields are omitted."""
        return self.model_dump(exclude_none=True)

    def clone(self) -> LocationFact:
        return self.model_copy()

    def same_location(self, other: LocationFact) -> bool:
        return (self.file, self.lineno, self.content, self.revision, self.deleted) == (
            other.file,
            other.lineno,
            other.content,
            other.revision,
            other.deleted,
        )


def looks_like_fact(blob: Any) -> bool:
    """Whether a persisted value has the shape of a LocationFact record."""
    return isinstance(blob, dict) and REQUIRED_FACT_KEYS.issubset(blob.keys())


__all__ = ["LocationFact", "REQUIRED_FACT_KEYS", "looks_like_fact"]
