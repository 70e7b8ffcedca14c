from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory, NoteZone  # noqa: TCH001


class NoteFieldsResult(AppBaseModel):
    """Structured output for a note's generated title, category and zone."""

    title: str = Field(description="A concise title for the note")
    category: NoteCategory = Field(description="The most appropriate category for the note")
    zone: NoteZone = Field(description="The most appropriate zone for the note")


class NoteEnrichmentResult(AppBaseModel):
    """Validated enrichment output for tags."""

    tags: list[str] = Field(
        description="List of tags for the note, maximum 5 tags",
        max_length=5,
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "tags": ["project-x", "meeting", "alice"]
                }
            ]
        }
    }
