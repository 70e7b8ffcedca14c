from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from cosmic_notes.core.models.cluster import Cluster

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.cluster import TagFamily, TodoItem
    from cosmic_notes.core.models.note import NoteCategory


class ClusterRepository(ABC):
    """Cluster rows, at most one per (tag, category)."""

    @abstractmethod
    async def get(self, cluster_id: int) -> Cluster | None:  # pragma: no cover - interface only
        ...

    @abstractmethod
    async def get_for_tag_category(self, tag_id: int, category: NoteCategory) -> Cluster | None:  # pragma: no cover
        ...

    @abstractmethod
    async def list(
        self,
        *,
        tag_id: int | None = None,
        category: NoteCategory | None = None,
    ) -> Sequence[Cluster]:  # pragma: no cover
        ...

    @abstractmethod
    async def insert(self, cluster: Cluster) -> Cluster:  # pragma: no cover
        ...

    @abstractmethod
    async def update_fields(self, cluster_id: int, changes: dict) -> Cluster | None:  # pragma: no cover
        ...

    @abstractmethod
    async def delete_many(self, cluster_ids: Sequence[int]) -> int:  # pragma: no cover
        """Delete clusters in one batch and return how many were removed."""

    @abstractmethod
    async def delete_for_tag(self, tag_id: int) -> int:  # pragma: no cover
        ...

    @abstractmethod
    async def mark_dirty(self, tag_id: int, category: NoteCategory | None = None) -> None:  # pragma: no cover
        """Flag a tag's clusters (or one category's cluster) as stale."""

    async def upsert_cluster(
        self,
        *,
        tag_id: int,
        category: NoteCategory,
        note_count: int,
        summary: str,
        embedding: list[float] | None,
    ) -> tuple[Cluster, bool]:
        """Insert or update the cluster keyed by (tag, category).

        Read-check-then-write; concurrent gathers race with last write wins.
        Returns the stored cluster and whether it was created.
        """
        existing = await self.get_for_tag_category(tag_id, category)
        if existing is None:
            created = await self.insert(
                Cluster(
                    tag=tag_id,
                    category=category,
                    note_count=note_count,
                    summary=summary,
                    embedding=embedding,
                    dirty=False,
                )
            )
            return created, True

        changes = {
            "note_count": note_count,
            "summary": summary,
            "embedding": embedding,
            "dirty": False,
        }
        updated = await self.update_fields(existing.id, changes)
        return (updated or existing.model_copy(update=changes)), False


class TagFamilyRepository(ABC):
    """Stored per-tag note counts from the last successful clustering."""

    @abstractmethod
    async def get_by_tag(self, tag_name: str) -> TagFamily | None:  # pragma: no cover - interface only
        ...

    @abstractmethod
    async def create(self, tag_name: str, tag_count: int = 0) -> TagFamily:  # pragma: no cover
        ...

    @abstractmethod
    async def update_count(self, family_id: int, tag_count: int) -> None:  # pragma: no cover
        ...

    @abstractmethod
    async def list_all(self) -> Sequence[TagFamily]:  # pragma: no cover
        ...

    @abstractmethod
    async def delete_many(self, family_ids: Sequence[int]) -> int:  # pragma: no cover
        ...


class TodoItemRepository(ABC):
    """To-do items generated for a tag."""

    @abstractmethod
    async def list_for_tag(self, tag_id: int) -> Sequence[TodoItem]:  # pragma: no cover - interface only
        ...

    @abstractmethod
    async def create_many(self, tag_id: int, items: Sequence[str]) -> Sequence[TodoItem]:  # pragma: no cover
        ...

    @abstractmethod
    async def set_done(self, item_id: int, done: bool) -> TodoItem | None:  # pragma: no cover
        ...
