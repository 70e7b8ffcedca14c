from __future__ import annotations

from types import SimpleNamespace

import pytest

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ProviderError
from cosmic_notes.core.models.cluster import Cluster
from cosmic_notes.core.models.note import NoteCategory, NoteZone
from cosmic_notes.core.prompts.strategies import get_synthesis_strategy
from cosmic_notes.core.repositories.implementations.supabase.base import SupabaseRepository
from cosmic_notes.core.schemas.enrichment import NoteEnrichmentResult, NoteFieldsResult
from cosmic_notes.core.services.embedding_service import OpenAIEmbeddingProvider
from cosmic_notes.core.services.enrichment_service import generate_note_fields, suggest_note_tags
from cosmic_notes.core.services.synthesis_service import OpenAISynthesisProvider


class StubResponses:
    def __init__(self, build=None, error: Exception | None = None) -> None:
        self.build = build
        self.error = error
        self.requests: list[dict] = []

    async def parse(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        parsed = self.build(kwargs["text_format"]) if self.build else None
        return SimpleNamespace(output_parsed=parsed)


class StubEmbeddings:
    def __init__(self, vector: list[float]) -> None:
        self.vector = vector
        self.inputs: list[str] = []

    async def create(self, *, model: str, input: str):
        self.inputs.append(input)
        return SimpleNamespace(data=[SimpleNamespace(embedding=self.vector)])


async def test_synthesize_uses_strategy_output_key_and_tier():
    responses = StubResponses(build=lambda fmt: fmt(research="  # Findings  "))
    provider = OpenAISynthesisProvider(SimpleNamespace(responses=responses))
    strategy = get_synthesis_strategy(NoteCategory.RESEARCH)

    summary = await provider.synthesize(strategy, "prompt")

    assert summary == "# Findings"
    request = responses.requests[0]
    assert request["model"] == settings.summary_model_advanced
    assert request["input"][0] == {"role": "system", "content": strategy.system}
    assert set(request["text_format"].model_fields) == {"research"}


async def test_generate_items_drops_existing_and_blank_items():
    responses = StubResponses(build=lambda fmt: fmt(items=["Buy milk", " Call Alice ", "", "Call Alice"]))
    provider = OpenAISynthesisProvider(SimpleNamespace(responses=responses))

    items = await provider.generate_items(get_synthesis_strategy(NoteCategory.TODO), "prompt", ["Buy milk"])

    assert items == ["Call Alice"]
    assert responses.requests[0]["model"] == settings.items_model


async def test_refusal_raises_provider_error():
    provider = OpenAISynthesisProvider(SimpleNamespace(responses=StubResponses()))

    with pytest.raises(ProviderError):
        await provider.synthesize(get_synthesis_strategy(NoteCategory.JOURNAL), "prompt")


async def test_request_failure_raises_provider_error():
    responses = StubResponses(error=RuntimeError("timeout"))
    provider = OpenAISynthesisProvider(SimpleNamespace(responses=responses))

    with pytest.raises(ProviderError) as exc_info:
        await provider.synthesize(get_synthesis_strategy(NoteCategory.MEETING), "prompt")

    assert exc_info.value.details["category"] == "meeting"


async def test_embedding_flattens_newlines():
    embeddings = StubEmbeddings([0.5, 0.25])
    provider = OpenAIEmbeddingProvider(SimpleNamespace(embeddings=embeddings), model="test-model")

    assert await provider.embed("line one\nline two") == [0.5, 0.25]
    assert embeddings.inputs == ["line one line two"]


async def test_embedding_never_returns_empty_vector():
    provider = OpenAIEmbeddingProvider(SimpleNamespace(embeddings=StubEmbeddings([])))

    with pytest.raises(ProviderError):
        await provider.embed("text")
    with pytest.raises(ProviderError):
        await provider.embed("   ")


async def test_generate_note_fields_parses_structured_output():
    def _build(fmt):
        assert fmt is NoteFieldsResult
        return fmt(title="Standup", category=NoteCategory.MEETING, zone=NoteZone.WORK)

    client = SimpleNamespace(responses=StubResponses(build=_build))

    result = await generate_note_fields(content="talked about the launch", client=client)

    assert result.category is NoteCategory.MEETING
    assert await generate_note_fields(content="  ", client=client) is None


async def test_suggest_note_tags_merges_hashtags_first():
    def _build(fmt):
        assert fmt is NoteEnrichmentResult
        return fmt(tags=["Launch", "work"])

    client = SimpleNamespace(responses=StubResponses(build=_build))

    tags = await suggest_note_tags(title="Plan", content="prep the #launch deck", client=client)

    assert tags == ["launch", "work"]


async def test_suggest_note_tags_falls_back_to_hashtags():
    client = SimpleNamespace(responses=StubResponses(error=RuntimeError("down")))

    assert await suggest_note_tags(title=None, content="#one and #two", client=client) == ["one", "two"]


def test_row_mapping_parses_pgvector_strings():
    row = {
        "id": 4,
        "tag": 2,
        "category": "journal",
        "note_count": 3,
        "summary": "s",
        "embedding": "[0.1,0.2]",
        "dirty": False,
        "created_at": "2024-03-01T00:00:00+00:00",
        "joined_column": "ignored",
    }

    cluster = SupabaseRepository._row_to_model(Cluster, row)

    assert cluster.embedding == [0.1, 0.2]
    assert cluster.category is NoteCategory.JOURNAL
    assert "embedding" not in SupabaseRepository._model_to_row(Cluster(tag=1, category=NoteCategory.JOURNAL))
