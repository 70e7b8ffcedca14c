from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.schemas.taxonomy import TagVocabulary
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from cosmic_notes.core.repositories.tag_repository import TagRepository


logger = get_logger(__name__)


async def build_tag_vocabulary(tags: TagRepository, *, limit: int | None = None) -> TagVocabulary:
    """Collect the known tag names, most used first.

    Tag names are already normalized on write, so the vocabulary is the tag
    table ordered by live association count (ties by name).
    """
    all_tags = await tags.list_all()
    counts = await tags.count_links_by_tag()

    ranked = sorted(all_tags, key=lambda t: (-counts.get(t.id, 0), t.name))
    names = [t.name for t in ranked]
    if limit is not None:
        names = names[:limit]

    logger.debug("Built tag vocabulary with %d tag(s)", len(names))
    return TagVocabulary(tag_vocab=names)
