from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cosmic_notes.core.models.base import utcnow
from cosmic_notes.core.models.cluster import Cluster, TagFamily, TodoItem
from cosmic_notes.core.repositories.cluster_repository import (
    ClusterRepository,
    TagFamilyRepository,
    TodoItemRepository,
)

from .base import SupabaseRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import NoteCategory


class SupabaseClusterRepository(SupabaseRepository, ClusterRepository):
    """Clusters in `cosmic_cluster` with a unique (tag, category) constraint."""

    TABLE_NAME = "cosmic_cluster"

    async def get(self, cluster_id: int) -> Cluster | None:
        resp = await self._run(lambda: self._table().select("*").eq("id", cluster_id).limit(1).execute())
        items = resp.data or []
        return self._row_to_model(Cluster, items[0]) if items else None

    async def get_for_tag_category(self, tag_id: int, category: NoteCategory) -> Cluster | None:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .eq("tag", tag_id)
            .eq("category", category.value)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        return self._row_to_model(Cluster, items[0]) if items else None

    async def list(
        self,
        *,
        tag_id: int | None = None,
        category: NoteCategory | None = None,
    ) -> Sequence[Cluster]:
        def _query(start: int, end: int) -> Any:
            q = self._table().select("*")
            if tag_id is not None:
                q = q.eq("tag", tag_id)
            if category is not None:
                q = q.eq("category", category.value)
            return q.order("id").range(start, end)

        rows = await self._fetch_all(_query)
        return [self._row_to_model(Cluster, r) for r in rows]

    async def insert(self, cluster: Cluster) -> Cluster:
        row = self._model_to_row(cluster)
        # A concurrent gather may have inserted the same pair since our read
        resp = await self._run(
            lambda: self._table()
            .upsert(row, on_conflict="tag,category")
            .execute()
        )
        return self._row_to_model(Cluster, self._first(resp.data))

    async def update_fields(self, cluster_id: int, changes: dict) -> Cluster | None:
        payload = {k: v for k, v in changes.items() if k not in {"id", "tag", "category", "created_at"}}
        payload["updated_at"] = utcnow().isoformat()
        resp = await self._run(lambda: self._table().update(payload).eq("id", cluster_id).execute())
        items = resp.data or []
        return self._row_to_model(Cluster, items[0]) if items else None

    async def delete_many(self, cluster_ids: Sequence[int]) -> int:
        ids = list(dict.fromkeys(cluster_ids))
        if not ids:
            return 0
        resp = await self._run(lambda: self._table().delete().in_("id", ids).execute())
        return len(resp.data or [])

    async def delete_for_tag(self, tag_id: int) -> int:
        resp = await self._run(lambda: self._table().delete().eq("tag", tag_id).execute())
        return len(resp.data or [])

    async def mark_dirty(self, tag_id: int, category: NoteCategory | None = None) -> None:
        def _query() -> Any:
            q = self._table().update({"dirty": True}).eq("tag", tag_id)
            if category is not None:
                q = q.eq("category", category.value)
            return q.execute()

        await self._run(_query)


class SupabaseTagFamilyRepository(SupabaseRepository, TagFamilyRepository):
    TABLE_NAME = "cosmic_tag_family"

    async def get_by_tag(self, tag_name: str) -> TagFamily | None:
        resp = await self._run(lambda: self._table().select("*").eq("tag", tag_name).limit(1).execute())
        items = resp.data or []
        return self._row_to_model(TagFamily, items[0]) if items else None

    async def create(self, tag_name: str, tag_count: int = 0) -> TagFamily:
        row = {"tag": tag_name, "tag_count": tag_count}
        resp = await self._run(lambda: self._table().upsert(row, on_conflict="tag").execute())
        return self._row_to_model(TagFamily, self._first(resp.data))

    async def update_count(self, family_id: int, tag_count: int) -> None:
        payload = {"tag_count": tag_count, "updated_at": utcnow().isoformat()}
        await self._run(lambda: self._table().update(payload).eq("id", family_id).execute())

    async def list_all(self) -> Sequence[TagFamily]:
        rows = await self._fetch_all(lambda start, end: self._table().select("*").order("id").range(start, end))
        return [self._row_to_model(TagFamily, r) for r in rows]

    async def delete_many(self, family_ids: Sequence[int]) -> int:
        ids = list(dict.fromkeys(family_ids))
        if not ids:
            return 0
        resp = await self._run(lambda: self._table().delete().in_("id", ids).execute())
        return len(resp.data or [])


class SupabaseTodoItemRepository(SupabaseRepository, TodoItemRepository):
    TABLE_NAME = "cosmic_todo_item"

    async def list_for_tag(self, tag_id: int) -> Sequence[TodoItem]:
        rows = await self._fetch_all(
            lambda start, end: self._table().select("*").eq("tag", tag_id).order("created_at").range(start, end)
        )
        return [self._row_to_model(TodoItem, r) for r in rows]

    async def create_many(self, tag_id: int, items: Sequence[str]) -> Sequence[TodoItem]:
        if not items:
            return []
        rows = [{"tag": tag_id, "item": item, "done": False} for item in items]
        resp = await self._run(lambda: self._table().insert(rows).execute())
        return [self._row_to_model(TodoItem, r) for r in resp.data or []]

    async def set_done(self, item_id: int, done: bool) -> TodoItem | None:
        payload = {"done": done, "updated_at": utcnow().isoformat()}
        resp = await self._run(lambda: self._table().update(payload).eq("id", item_id).execute())
        items = resp.data or []
        return self._row_to_model(TodoItem, items[0]) if items else None
