from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

from cosmic_notes.core.models.base import utcnow
from cosmic_notes.core.models.tag import Tag
from cosmic_notes.core.repositories.tag_repository import TagRepository

from .base import SupabaseRepository

if TYPE_CHECKING:
    from collections.abc import Sequence


class SupabaseTagRepository(SupabaseRepository, TagRepository):
    """Tags in `cosmic_tags`, associations in `cosmic_memory_tag_map`.

    The join table has a unique (note, tag) constraint; inserts go through
    upsert with `ignore_duplicates` so a concurrent duplicate add is a no-op.
    """

    TABLE_NAME = "cosmic_tags"
    LINK_TABLE = "cosmic_memory_tag_map"

    async def get(self, tag_id: int) -> Tag | None:
        resp = await self._run(lambda: self._table().select("*").eq("id", tag_id).limit(1).execute())
        items = resp.data or []
        return self._row_to_model(Tag, items[0]) if items else None

    async def get_by_name(self, name: str) -> Tag | None:
        resp = await self._run(lambda: self._table().select("*").eq("name", name).limit(1).execute())
        items = resp.data or []
        return self._row_to_model(Tag, items[0]) if items else None

    async def get_by_names(self, names: Sequence[str]) -> Sequence[Tag]:
        if not names:
            return []
        resp = await self._run(lambda: self._table().select("*").in_("name", list(names)).execute())
        return [self._row_to_model(Tag, r) for r in resp.data or []]

    async def list_all(self, *, only_dirty: bool = False) -> Sequence[Tag]:
        def _query(start: int, end: int) -> Any:
            q = self._table().select("*")
            if only_dirty:
                q = q.eq("dirty", True)
            return q.order("id").range(start, end)

        rows = await self._fetch_all(_query)
        return [self._row_to_model(Tag, r) for r in rows]

    async def create_many(self, names: Sequence[str]) -> Sequence[Tag]:
        if not names:
            return []
        rows = [{"name": name, "dirty": True} for name in names]
        resp = await self._run(lambda: self._table().insert(rows).execute())
        return [self._row_to_model(Tag, r) for r in resp.data or []]

    async def delete(self, tag_id: int) -> None:
        await self._run(lambda: self._table().delete().eq("id", tag_id).execute())

    async def set_dirty(self, tag_ids: Sequence[int], dirty: bool = True) -> None:
        ids = list(dict.fromkeys(tag_ids))
        if not ids:
            return
        payload = {"dirty": dirty, "updated_at": utcnow().isoformat()}
        await self._run(lambda: self._table().update(payload).in_("id", ids).execute())

    async def list_note_ids(self, tag_id: int) -> Sequence[int]:
        rows = await self._fetch_all(
            lambda start, end: self._table(self.LINK_TABLE).select("note").eq("tag", tag_id).order("note").range(start, end)
        )
        return [r["note"] for r in rows]

    async def list_tag_ids_for_note(self, note_id: int) -> Sequence[int]:
        resp = await self._run(lambda: self._table(self.LINK_TABLE).select("tag").eq("note", note_id).execute())
        return [r["tag"] for r in resp.data or []]

    async def add_links(self, note_id: int, tag_ids: Sequence[int]) -> None:
        if not tag_ids:
            return
        rows = [{"note": note_id, "tag": tag_id} for tag_id in tag_ids]
        await self._run(
            lambda: self._table(self.LINK_TABLE)
            .upsert(rows, on_conflict="note,tag", ignore_duplicates=True)
            .execute()
        )

    async def remove_link(self, note_id: int, tag_id: int) -> None:
        await self._run(
            lambda: self._table(self.LINK_TABLE)
            .delete()
            .eq("note", note_id)
            .eq("tag", tag_id)
            .execute()
        )

    async def count_links(self, tag_id: int) -> int:
        resp = await self._run(
            lambda: self._table(self.LINK_TABLE)
            .select("tag", count="exact")
            .eq("tag", tag_id)
            .limit(1)
            .execute()
        )
        return resp.count or 0

    async def count_links_by_tag(self) -> dict[int, int]:
        rows = await self._fetch_all(
            lambda start, end: self._table(self.LINK_TABLE).select("note, tag").order("tag").order("note").range(start, end)
        )
        return dict(Counter(r["tag"] for r in rows))
