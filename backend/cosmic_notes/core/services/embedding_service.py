from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ProviderError
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from openai import AsyncOpenAI

    from cosmic_notes.core.models.note import Note

logger = get_logger(__name__)


class EmbeddingProvider(Protocol):
    async def embed(self, text: str) -> list[float]:
        """Return the embedding vector for `text`; raise ProviderError on failure."""
        ...


def build_note_text(title: str | None, content: str | None) -> str:
    """Concatenate title and content into a single string for embeddings.

    Keeps a stable delimiter so updates result in stable text shape.
    """
    safe_title = (title or "").strip()
    safe_content = (content or "").strip()
    if safe_title and safe_content:
        return f"{safe_title}\n\n{safe_content}"
    return safe_title or safe_content


def build_cluster_text(notes: Sequence[Note]) -> str:
    """Concatenated note contents representing a cluster's aggregate content."""
    return "\n".join(note.content or note.title for note in notes if note.content or note.title)


class OpenAIEmbeddingProvider:
    """Embeddings through the OpenAI async client."""

    def __init__(self, client: AsyncOpenAI, model: str | None = None) -> None:
        self._client = client
        self._model = model or settings.embedding_model

    async def embed(self, text: str) -> list[float]:
        # Newlines degrade embedding quality for older models
        input_text = text.replace("\n", " ").strip()
        if not input_text:
            raise ProviderError("Cannot embed empty text")

        try:
            resp = await self._client.embeddings.create(model=self._model, input=input_text)
        except Exception as err:
            logger.error("Failed to create embedding: %s", err)
            raise ProviderError(f"Embedding request failed: {err}", details={"model": self._model}) from err

        if not resp.data or not resp.data[0].embedding:
            raise ProviderError("Embedding response contained no vector", details={"model": self._model})
        return list(resp.data[0].embedding)
