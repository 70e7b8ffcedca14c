from __future__ import annotations

from datetime import datetime  # noqa: TCH003

from pydantic import Field, field_validator, model_validator

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory, NoteZone  # noqa: TCH001
from cosmic_notes.utils.text import normalize_tag_names


class NoteCreate(AppBaseModel):
    title: str | None = Field(default=None, max_length=255, description="Note title")
    content: str | None = Field(default=None, max_length=20000, description="Note content")
    category: NoteCategory | None = Field(default=None, description="Generated when omitted")
    zone: NoteZone | None = Field(default=None, description="Generated when omitted")
    tags: list[str] = Field(default_factory=list, description="Tag names to attach")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tag_names(v)

    @model_validator(mode="after")
    def validate_title_or_content(self) -> NoteCreate:
        title = (self.title or "").strip()
        content = (self.content or "").strip()
        if not title and not content:
            raise ValueError("Either title or content must be provided and non-empty")
        self.title = title or None
        self.content = content or None
        return self


class NoteUpdate(AppBaseModel):
    title: str | None = Field(default=None, max_length=255)
    content: str | None = Field(default=None, max_length=20000)
    category: NoteCategory | None = None
    zone: NoteZone | None = None


class NoteTagsAdd(AppBaseModel):
    tags: list[str] = Field(default_factory=list, description="Tag names, created on first use")
    tag_ids: list[int] = Field(default_factory=list, description="Existing tag ids")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tag_names(v)

    @model_validator(mode="after")
    def validate_not_empty(self) -> NoteTagsAdd:
        if not self.tags and not self.tag_ids:
            raise ValueError("Provide at least one tag name or tag id")
        return self


class NoteRead(AppBaseModel):
    id: int
    title: str | None
    content: str
    category: NoteCategory
    zone: NoteZone
    metadata: dict
    created_at: datetime
    updated_at: datetime | None
