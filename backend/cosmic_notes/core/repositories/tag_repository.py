from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.tag import Tag


class TagRepository(ABC):
    """Tags and the note-tag join table."""

    @abstractmethod
    async def get(self, tag_id: int) -> Tag | None:  # pragma: no cover - interface only
        ...

    @abstractmethod
    async def get_by_name(self, name: str) -> Tag | None:  # pragma: no cover
        ...

    @abstractmethod
    async def get_by_names(self, names: Sequence[str]) -> Sequence[Tag]:  # pragma: no cover
        ...

    @abstractmethod
    async def list_all(self, *, only_dirty: bool = False) -> Sequence[Tag]:  # pragma: no cover
        ...

    @abstractmethod
    async def create_many(self, names: Sequence[str]) -> Sequence[Tag]:  # pragma: no cover
        """Insert new tags (dirty) and return them with ids."""

    @abstractmethod
    async def delete(self, tag_id: int) -> None:  # pragma: no cover
        """Delete a tag row; its remaining links go with it."""

    @abstractmethod
    async def set_dirty(self, tag_ids: Sequence[int], dirty: bool = True) -> None:  # pragma: no cover
        ...

    @abstractmethod
    async def list_note_ids(self, tag_id: int) -> Sequence[int]:  # pragma: no cover
        ...

    @abstractmethod
    async def list_tag_ids_for_note(self, note_id: int) -> Sequence[int]:  # pragma: no cover
        ...

    @abstractmethod
    async def add_links(self, note_id: int, tag_ids: Sequence[int]) -> None:  # pragma: no cover
        """Insert (note, tag) rows. Callers pass only pairs not already present."""

    @abstractmethod
    async def remove_link(self, note_id: int, tag_id: int) -> None:  # pragma: no cover
        ...

    @abstractmethod
    async def count_links(self, tag_id: int) -> int:  # pragma: no cover
        ...

    @abstractmethod
    async def count_links_by_tag(self) -> dict[int, int]:  # pragma: no cover
        """Return live association counts keyed by tag id (tags with links only)."""
