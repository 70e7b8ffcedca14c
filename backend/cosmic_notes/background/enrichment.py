from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.repositories.implementations.supabase.tag_repository import SupabaseTagRepository
from cosmic_notes.core.services.enrichment_service import suggest_note_tags
from cosmic_notes.core.services.taxonomy_service import build_tag_vocabulary
from cosmic_notes.db.base import get_supabase_admin_client
from cosmic_notes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.services.tag_registry import TagRegistry


async def suggest_and_apply_note_tags(
    *,
    note_id: int,
    title: str | None,
    content: str | None,
    registry: TagRegistry,
    tags: TagRepository | None = None,
) -> list[int]:
    """Background job: suggest tags for a note and attach them through the registry.

    The note's current tags and the whole tag vocabulary are offered to the
    suggester so existing tags get reused. Returns the attached tag ids;
    failures are logged and yield an empty list.
    """
    logger.info("Starting tag suggestion job for note %s", note_id)

    try:
        tags = tags or SupabaseTagRepository(get_supabase_admin_client())

        vocabulary = await build_tag_vocabulary(tags)
        current_tags = [await tags.get(tag_id) for tag_id in await tags.list_tag_ids_for_note(note_id)]
        current_names = [t.name for t in current_tags if t is not None]

        suggested = await suggest_note_tags(
            title=title,
            content=content,
            vocabulary=vocabulary,
            existing_tags=current_names,
        )
        new_names = [name for name in suggested if name not in current_names]
        if not new_names:
            logger.info("No new tags suggested for note %s", note_id)
            return []

        tag_ids = await registry.add_tags_to_note(note_id, new_names)
        logger.info("Attached %d suggested tag(s) to note %s", len(tag_ids), note_id, extra={"tags": new_names})
        return tag_ids
    except Exception as err:
        logger.error("Tag suggestion job failed for note %s: %s", note_id, err)
        return []
