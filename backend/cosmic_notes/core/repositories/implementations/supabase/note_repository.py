from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cosmic_notes.core.models.base import utcnow
from cosmic_notes.core.models.note import Note
from cosmic_notes.core.repositories.note_repository import NoteRepository
from cosmic_notes.utils.logging import get_logger

from .base import SupabaseRepository

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import NoteCategory


class SupabaseNoteRepository(SupabaseRepository, NoteRepository):
    """Supabase implementation of the NoteRepository.

    Uses Supabase's PostgREST client for CRUD over the `cosmic_memory` table.
    Tag associations live in `cosmic_memory_tag_map` and are handled by the
    tag repository; the foreign key cascades on note deletion.
    """

    TABLE_NAME = "cosmic_memory"

    async def create(self, note: Note) -> Note:
        row = self._note_to_row(note)
        resp = await self._run(
            lambda: self._table()
            .insert(row)
            .execute()
        )
        return self._row_to_note(self._first(resp.data))

    async def get(self, note_id: int) -> Note | None:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .eq("id", note_id)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def list(self, *, limit: int = 50, offset: int = 0) -> Sequence[Note]:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .order("updated_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [self._row_to_note(i) for i in resp.data or []]

    async def list_by_ids(self, note_ids: Sequence[int]) -> Sequence[Note]:
        ids = list(dict.fromkeys(note_ids))
        if not ids:
            return []
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .in_("id", ids)
            .execute()
        )
        return [self._row_to_note(i) for i in resp.data or []]

    async def list_by_category(self, category: NoteCategory) -> Sequence[Note]:
        rows = await self._fetch_all(
            lambda start, end: self._table()
            .select("*")
            .eq("category", category.value)
            .order("id")
            .range(start, end)
        )
        return [self._row_to_note(r) for r in rows]

    async def update_fields(self, note_id: int, changes: dict) -> Note | None:
        # Never let callers move ids or creation timestamps
        sanitized: dict[str, Any] = {k: v for k, v in (changes or {}).items() if k not in {"id", "created_at", "updated_at"}}
        if not sanitized:
            return await self.get(note_id)

        sanitized = self._serialize_changes(sanitized)
        sanitized["updated_at"] = utcnow().isoformat()
        resp = await self._run(
            lambda: self._table()
            .update(sanitized)
            .eq("id", note_id)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def delete(self, note_id: int) -> bool:
        resp = await self._run(
            lambda: self._table()
            .delete()
            .eq("id", note_id)
            .execute()
        )
        return len(resp.data or []) > 0

    @staticmethod
    def _serialize_changes(changes: dict[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in changes.items():
            out[key] = value.value if hasattr(value, "value") else value
        return out

    @classmethod
    def _row_to_note(cls, row: dict[str, Any]) -> Note:
        normalized = dict(row)
        if normalized.get("content") is None:
            normalized["content"] = ""
        return cls._row_to_model(Note, normalized)

    @classmethod
    def _note_to_row(cls, note: Note) -> dict[str, Any]:
        return cls._model_to_row(note)
