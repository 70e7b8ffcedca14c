from __future__ import annotations

from pydantic import Field

from .base import TimestampedModel
from .note import NoteCategory  # noqa: TCH001


class Cluster(TimestampedModel):
    """AI-synthesized aggregate over the notes sharing a tag and category."""

    tag: int = Field(description="Owning tag id")
    category: NoteCategory
    note_count: int = Field(default=0, ge=0)
    summary: str = ""
    embedding: list[float] | None = None
    dirty: bool = False


class TagFamily(TimestampedModel):
    """Per-tag clustering bookkeeping.

    `tag_count` is the note count seen by the last successful clustering of
    the tag; gather compares it with the live count to decide whether to
    re-synthesize.
    """

    tag: str = Field(description="Tag name")
    tag_count: int = Field(default=0, ge=0)


class TodoItem(TimestampedModel):
    """An action item generated from a tag's to-do notes."""

    tag: int = Field(description="Owning tag id")
    item: str
    done: bool = False
