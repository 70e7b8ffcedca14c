from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel


class TagVocabulary(AppBaseModel):
    """Existing tag names offered to the tag suggester for reuse."""

    tag_vocab: list[str] = Field(default_factory=list)
