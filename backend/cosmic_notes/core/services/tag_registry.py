"""Tag-note associations and the dirty-flag protocol.

Every association mutation goes through `TagRegistry`, which emits an
`AssociationChange` to its subscribers. `DirtyFlagListener` is the one
subscriber that turns those changes into tag and cluster dirty flags; it is
wired after construction through narrow capability protocols so the registry
never holds the note or cluster stores directly.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol

from pydantic import ConfigDict

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.text import normalize_tag_names

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import Note, NoteCategory
    from cosmic_notes.core.repositories.tag_repository import TagRepository

logger = get_logger(__name__)


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    NOTE_EDITED = "note_edited"


class AssociationChange(AppBaseModel):
    """A note's tag associations (or the note itself) changed."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    note_id: int
    tag_ids: tuple[int, ...] = ()


class AssociationListener(Protocol):
    async def on_association_change(self, change: AssociationChange) -> None:
        ...


class TagDirtyMarker(Protocol):
    async def set_dirty(self, tag_ids: Sequence[int], dirty: bool = True) -> None:
        ...


class ClusterDirtyMarker(Protocol):
    async def mark_dirty(self, tag_id: int, category: NoteCategory | None = None) -> None:
        ...


class NoteLookup(Protocol):
    async def get(self, note_id: int) -> Note | None:
        ...


class DirtyFlagListener:
    """Marks tags, and the clusters a change can affect, as stale."""

    def __init__(self, tags: TagDirtyMarker, clusters: ClusterDirtyMarker, notes: NoteLookup) -> None:
        self._tags = tags
        self._clusters = clusters
        self._notes = notes

    async def on_association_change(self, change: AssociationChange) -> None:
        if not change.tag_ids:
            return

        await self._tags.set_dirty(change.tag_ids, True)

        # An edit may have moved the note to another category, so every
        # cluster of the tag is suspect
        category: NoteCategory | None = None
        if change.kind is not ChangeKind.NOTE_EDITED:
            note = await self._notes.get(change.note_id)
            category = note.category if note else None

        for tag_id in change.tag_ids:
            await self._clusters.mark_dirty(tag_id, category)


class TagRegistry:
    """Owns tag creation/deletion and the note-tag join table."""

    def __init__(self, tags: TagRepository) -> None:
        self._tags = tags
        self._listeners: list[AssociationListener] = []

    def subscribe(self, listener: AssociationListener) -> None:
        self._listeners.append(listener)

    async def _emit(self, change: AssociationChange) -> None:
        for listener in self._listeners:
            await listener.on_association_change(change)

    async def add_tags_to_note(
        self,
        note_id: int,
        tag_names: Sequence[str] | None = None,
        existing_tag_ids: Sequence[int] | None = None,
    ) -> list[int]:
        """Associate tags with a note, creating any tag seen for the first time.

        Names are normalized before lookup. Pairs that already exist are left
        alone, but every resolved tag is still marked dirty. Returns the
        resolved tag ids in input order.
        """
        names = normalize_tag_names(list(tag_names or []))
        resolved: list[int] = []

        if names:
            found = {t.name: t for t in await self._tags.get_by_names(names)}
            missing = [n for n in names if n not in found]
            if missing:
                logger.info("Creating %d new tag(s) for note %s", len(missing), note_id)
                found.update({t.name: t for t in await self._tags.create_many(missing)})
            resolved.extend(found[n].id for n in names if n in found and found[n].id is not None)

        for tag_id in existing_tag_ids or []:
            if tag_id not in resolved:
                resolved.append(tag_id)

        if not resolved:
            return []

        current = set(await self._tags.list_tag_ids_for_note(note_id))
        new_ids = [tag_id for tag_id in resolved if tag_id not in current]
        if new_ids:
            await self._tags.add_links(note_id, new_ids)

        await self._emit(AssociationChange(kind=ChangeKind.ADDED, note_id=note_id, tag_ids=tuple(resolved)))
        return resolved

    async def remove_tag_from_note(self, note_id: int, tag_id: int) -> bool:
        """Drop one association. Returns True if the tag itself was deleted."""
        await self._tags.remove_link(note_id, tag_id)

        remaining = await self._tags.count_links(tag_id)
        if remaining == 0:
            logger.info("Deleting tag %s: no notes left", tag_id, extra={"tag": tag_id})
            await self._tags.delete(tag_id)
            return True

        await self._emit(AssociationChange(kind=ChangeKind.REMOVED, note_id=note_id, tag_ids=(tag_id,)))
        return False

    async def remove_all_tags_from_note(self, note_id: int) -> list[int]:
        """Detach every tag from a note about to be deleted; return the deleted tag ids."""
        deleted: list[int] = []
        for tag_id in await self._tags.list_tag_ids_for_note(note_id):
            if await self.remove_tag_from_note(note_id, tag_id):
                deleted.append(tag_id)
        return deleted

    async def note_edited(self, note_id: int) -> None:
        tag_ids = await self._tags.list_tag_ids_for_note(note_id)
        await self._emit(AssociationChange(kind=ChangeKind.NOTE_EDITED, note_id=note_id, tag_ids=tuple(tag_ids)))

    async def set_tag_dirty(self, tag_id: int) -> None:
        await self._tags.set_dirty([tag_id], True)

    async def clear_dirty(self, tag_ids: Sequence[int]) -> None:
        await self._tags.set_dirty(tag_ids, False)
