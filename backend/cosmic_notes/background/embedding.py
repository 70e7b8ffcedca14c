from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from cosmic_notes.core.services.embedding_service import OpenAIEmbeddingProvider, build_note_text
from cosmic_notes.db.base import get_supabase_admin_client
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client

logger = get_logger(__name__)

if TYPE_CHECKING:
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.services.embedding_service import EmbeddingProvider


async def generate_and_store_note_embedding(
    *,
    note_id: int,
    title: str | None,
    content: str | None,
    embedder: EmbeddingProvider | None = None,
    notes: NoteRepository | None = None,
) -> None:
    """Embed a note and persist the vector as background work.

    Runs with the service-role client. Failures are logged; the note keeps
    its previous embedding.
    """
    text = build_note_text(title, content)
    if not text.strip():
        logger.warning("No text content to embed for note %s", note_id)
        return

    try:
        embedder = embedder or OpenAIEmbeddingProvider(get_openai_client())
        vector = await embedder.embed(text)

        notes = notes or SupabaseNoteRepository(get_supabase_admin_client())
        await notes.update_fields(note_id, {"embedding": vector})
        logger.info("Stored embedding for note %s", note_id, extra={"dimensions": len(vector)})
    except Exception as err:
        logger.error("Embedding job failed for note %s: %s", note_id, err)
