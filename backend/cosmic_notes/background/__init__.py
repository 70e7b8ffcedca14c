from .embedding import generate_and_store_note_embedding
from .enrichment import suggest_and_apply_note_tags

__all__ = [
    "generate_and_store_note_embedding",
    "suggest_and_apply_note_tags",
]
