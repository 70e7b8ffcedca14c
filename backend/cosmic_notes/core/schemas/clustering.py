from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001


class CategoryClusterResult(AppBaseModel):
    """Outcome of clustering one (tag, category) pair."""

    category: NoteCategory
    note_count: int = Field(ge=0)
    cluster_id: int | None = None
    created: bool = False
    todo_items_added: int = 0


class TagClusteringResult(AppBaseModel):
    """Per-tag totals returned by the clustering engine."""

    tag: str
    count_changed: bool
    notes_processed: int = 0
    categories_processed: int = 0
    clusters_created: int = 0
    clusters_updated: int = 0
    todo_items_added: int = 0
    category_results: list[CategoryClusterResult] = Field(default_factory=list)


class CreatedCluster(AppBaseModel):
    tag: str
    category: NoteCategory
    note_count: int


class TagFailure(AppBaseModel):
    tag: str
    error: str
    error_type: str


class GatherReport(AppBaseModel):
    """Summary of one gather pass."""

    tags_processed: int = 0
    tags_skipped: int = 0
    tags_failed: int = 0
    categories_processed: int = 0
    clusters_created: list[CreatedCluster] = Field(default_factory=list)
    clusters_updated: int = 0
    clusters_deleted: int = 0
    tag_families_deleted: int = 0
    tags_deleted: int = 0
    failures: list[TagFailure] = Field(default_factory=list)
    details: list[TagClusteringResult] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "tags_processed": 1,
                    "tags_skipped": 3,
                    "tags_failed": 0,
                    "categories_processed": 1,
                    "clusters_created": [{"tag": "project-x", "category": "meeting", "note_count": 2}],
                    "clusters_updated": 0,
                    "clusters_deleted": 1,
                    "tag_families_deleted": 0,
                    "tags_deleted": 0,
                    "failures": [],
                    "details": [],
                }
            ]
        }
    }
