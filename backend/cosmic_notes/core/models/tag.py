from __future__ import annotations

from datetime import datetime  # noqa: TCH003

from pydantic import Field, field_validator

from cosmic_notes.utils.text import normalize_tag_name

from .base import AppBaseModel, TimestampedModel, utcnow


class Tag(TimestampedModel):
    """A label attached to notes; the unit of clustering."""

    name: str = Field(min_length=1, max_length=50)
    dirty: bool = Field(default=True, description="Clusters are stale and need regeneration")

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return normalize_tag_name(v)


class NoteTagLink(AppBaseModel):
    """Join row between a note and a tag."""

    note: int
    tag: int
    created_at: datetime = Field(default_factory=utcnow)
