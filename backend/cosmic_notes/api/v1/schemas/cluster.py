from __future__ import annotations

from datetime import datetime  # noqa: TCH003

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001


class TagRead(AppBaseModel):
    id: int
    name: str
    dirty: bool
    note_count: int = Field(default=0, description="Live association count")
    created_at: datetime


class ClusterRead(AppBaseModel):
    """Cluster without its embedding vector."""

    id: int
    tag: int
    category: NoteCategory
    note_count: int
    summary: str
    dirty: bool
    created_at: datetime
    updated_at: datetime | None


class TodoItemRead(AppBaseModel):
    id: int
    tag: int
    item: str
    done: bool
    created_at: datetime


class TodoItemUpdate(AppBaseModel):
    done: bool


class CleanupResult(AppBaseModel):
    clusters_deleted: int
    tags_deleted: int
