from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.errors import NotFoundError
from cosmic_notes.core.models.note import Note, NoteCategory, NoteZone
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.text import extract_hashtags, normalize_tag_names

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.schemas.enrichment import NoteFieldsResult
    from cosmic_notes.core.services.tag_registry import TagRegistry

    FieldsGenerator = Callable[..., Awaitable[NoteFieldsResult | None]]

logger = get_logger(__name__)

# Edits to these fields can change a cluster's synthesized output
_CLUSTER_FIELDS = {"title", "content", "category"}


class NoteService:
    """Note lifecycle plus the tag-registry hooks that keep clusters fresh.

    Tag bookkeeping failures during create/update/delete are logged and do not
    fail the note operation itself; explicit tag operations propagate them.
    """

    def __init__(
        self,
        repo: NoteRepository,
        registry: TagRegistry,
        *,
        fields_generator: FieldsGenerator | None = None,
    ) -> None:
        self._repo = repo
        self._registry = registry
        self._fields_generator = fields_generator

    async def create_note(self, create_dto) -> Note:
        """Create a note, filling missing title/category/zone and attaching tags.

        Tags come from the payload plus any `#hashtags` in the content.
        """
        title = (create_dto.title or "").strip() or None
        content = (create_dto.content or "").strip()
        if not (title or content):
            raise ValueError("Either title or content must be provided and non-empty")

        category = create_dto.category
        zone = create_dto.zone
        if self._fields_generator is not None and content and (title is None or category is None or zone is None):
            generated = await self._fields_generator(content=content)
            if generated is not None:
                title = title or generated.title
                category = category or generated.category
                zone = zone or generated.zone

        note = await self._repo.create(
            Note(
                title=title,
                content=content,
                category=category or NoteCategory.SCRATCHPAD,
                zone=zone or NoteZone.OTHER,
            )
        )

        hashtags, _ = extract_hashtags(content)
        tag_names = normalize_tag_names(list(getattr(create_dto, "tags", None) or []) + hashtags)
        if tag_names:
            await self._apply_tags(note.id, tag_names)
        return note

    async def get_note(self, note_id: int) -> Note | None:
        return await self._repo.get(note_id)

    async def list_notes(self, limit: int = 50, offset: int = 0) -> Sequence[Note]:
        """List notes, most recently updated first."""
        return await self._repo.list(limit=limit, offset=offset)

    async def get_notes_by_category(self, category: NoteCategory | str) -> Sequence[Note]:
        return await self._repo.list_by_category(NoteCategory.parse(category))

    async def update_note(self, note_id: int, update_dto) -> Note | None:
        """Apply a partial update; returns None when the note does not exist."""
        existing = await self._repo.get(note_id)
        if existing is None:
            return None

        changes: dict = {}
        for key, value in update_dto.model_dump(exclude_unset=True).items():
            if key not in {"title", "content", "category", "zone"}:
                continue
            if isinstance(value, str):
                value = value.strip()
                if key == "title" and value == "":
                    value = None
            if key in {"category", "zone"} and value is None:
                continue
            changes[key] = value

        merged_title = changes.get("title", existing.title)
        merged_content = changes.get("content", existing.content)
        if not ((merged_title or "").strip() or (merged_content or "").strip()):
            raise ValueError("Either title or content must be provided and non-empty")

        updated = await self._repo.update_fields(note_id, changes)
        if updated is not None and _CLUSTER_FIELDS.intersection(changes):
            try:
                await self._registry.note_edited(note_id)
            except Exception:
                logger.exception("Failed to mark tags dirty after editing note %s", note_id)
        return updated

    async def delete_note(self, note_id: int) -> bool:
        """Detach the note's tags, then delete it."""
        existing = await self._repo.get(note_id)
        if existing is None:
            return False

        try:
            deleted_tags = await self._registry.remove_all_tags_from_note(note_id)
            if deleted_tags:
                logger.info("Deleting note %s removed %d tag(s)", note_id, len(deleted_tags))
        except Exception:
            logger.exception("Failed to detach tags from note %s", note_id)
        return await self._repo.delete(note_id)

    async def add_tags(
        self,
        note_id: int,
        tag_names: Sequence[str],
        tag_ids: Sequence[int] | None = None,
    ) -> list[int]:
        if await self._repo.get(note_id) is None:
            raise NotFoundError(f"Note not found: {note_id}", details={"note_id": note_id})
        return await self._registry.add_tags_to_note(note_id, tag_names, tag_ids)

    async def remove_tag(self, note_id: int, tag_id: int) -> bool:
        if await self._repo.get(note_id) is None:
            raise NotFoundError(f"Note not found: {note_id}", details={"note_id": note_id})
        return await self._registry.remove_tag_from_note(note_id, tag_id)

    async def _apply_tags(self, note_id: int, tag_names: Sequence[str]) -> None:
        try:
            await self._registry.add_tags_to_note(note_id, tag_names)
        except Exception:
            logger.exception("Failed to attach tags %s to note %s", list(tag_names), note_id)
