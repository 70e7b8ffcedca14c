from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import Note, NoteCategory


class NoteRepository(ABC):
    """Abstract repository interface for notes.

    Contract used by services and dependency injection. Implementations should
    perform I/O (database, network) and therefore expose async methods.
    Implementations also satisfy the `NoteLookup` capability used by the tag
    registry's dirty-flag listener.
    """

    @abstractmethod
    async def create(self, note: Note) -> Note:  # pragma: no cover - interface only
        """Persist a new note and return the stored entity with its id."""

    @abstractmethod
    async def get(self, note_id: int) -> Note | None:  # pragma: no cover
        """Fetch a note by id or return None if not found."""

    @abstractmethod
    async def list(self, *, limit: int = 50, offset: int = 0) -> Sequence[Note]:  # pragma: no cover
        """Return most recently updated notes first."""

    @abstractmethod
    async def list_by_ids(self, note_ids: Sequence[int]) -> Sequence[Note]:  # pragma: no cover
        """Return the notes with the given ids; missing ids are ignored."""

    @abstractmethod
    async def list_by_category(self, category: NoteCategory) -> Sequence[Note]:  # pragma: no cover
        """Return every note in a category."""

    @abstractmethod
    async def update_fields(self, note_id: int, changes: dict) -> Note | None:  # pragma: no cover
        """Partially update fields on a note and return the updated entity, or None if missing."""

    @abstractmethod
    async def delete(self, note_id: int) -> bool:  # pragma: no cover
        """Delete a note by id. Return True if a row was removed, False otherwise."""
