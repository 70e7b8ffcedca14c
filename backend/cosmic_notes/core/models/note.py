from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from cosmic_notes.core.errors import UnknownCategoryError

from .base import TimestampedModel


class NoteCategory(str, Enum):
    """Kind of note; selects the synthesis strategy for its clusters."""

    TODO = "to-do"
    SCRATCHPAD = "scratchpad"
    COLLECTION = "collection"
    BRAINSTORM = "brainstorm"
    JOURNAL = "journal"
    MEETING = "meeting"
    RESEARCH = "research"
    LEARNING = "learning"
    FEEDBACK = "feedback"

    @classmethod
    def parse(cls, value: NoteCategory | str) -> NoteCategory:
        """Validate an untrusted category value.

        Raises:
            UnknownCategoryError: if the value is not one of the enum values
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as err:
            raise UnknownCategoryError(value) from err


class NoteZone(str, Enum):
    """Life area a note belongs to."""

    PERSONAL = "personal"
    WORK = "work"
    OTHER = "other"


class Note(TimestampedModel):
    """Note domain model."""

    title: str | None = Field(default=None, max_length=255, description="Note title")
    content: str = Field(default="", max_length=20000, description="Note content")

    category: NoteCategory = Field(default=NoteCategory.SCRATCHPAD, description="Kind of note")
    zone: NoteZone = Field(default=NoteZone.OTHER, description="Life area")

    # pgvector embedding field
    embedding: list[float] | None = Field(
        default=None,
        description="Vector embedding for semantic search (1536 dimensions for OpenAI)"
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("embedding")
    @classmethod
    def validate_embedding(cls, v: list[float] | None) -> list[float] | None:
        if v is not None and len(v) == 0:
            return None
        return v

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        return v if v is not None else {}

    @model_validator(mode="after")
    def normalize_text(self) -> Note:
        """Trim title/content and store an empty title as None."""
        if self.title is not None:
            stripped = self.title.strip()
            self.title = stripped if stripped else None
        self.content = (self.content or "").strip()
        return self

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 42,
                    "title": "Standup 03/02",
                    "content": "Ship the gather endpoint. Ask Alice about the GC window.",
                    "category": "meeting",
                    "zone": "work",
                    "metadata": {},
                }
            ]
        }
    }
