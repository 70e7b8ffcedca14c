from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends

from cosmic_notes.core.repositories.implementations.supabase.cluster_repository import (
    SupabaseClusterRepository,
    SupabaseTagFamilyRepository,
    SupabaseTodoItemRepository,
)
from cosmic_notes.core.repositories.implementations.supabase.note_repository import (
    SupabaseNoteRepository,
)
from cosmic_notes.core.repositories.implementations.supabase.tag_repository import (
    SupabaseTagRepository,
)
from cosmic_notes.core.services.cluster_gc import ClusterGarbageCollector
from cosmic_notes.core.services.clustering_service import ClusteringEngine
from cosmic_notes.core.services.embedding_service import OpenAIEmbeddingProvider
from cosmic_notes.core.services.enrichment_service import generate_note_fields
from cosmic_notes.core.services.gather_service import GatherService
from cosmic_notes.core.services.note_service import NoteService
from cosmic_notes.core.services.synthesis_service import OpenAISynthesisProvider
from cosmic_notes.core.services.tag_registry import DirtyFlagListener, TagRegistry
from cosmic_notes.db.base import get_supabase_admin_client
from cosmic_notes.utils.openai_client import get_openai_client

if TYPE_CHECKING:
    from supabase import Client

    from cosmic_notes.core.repositories.cluster_repository import (
        ClusterRepository,
        TagFamilyRepository,
        TodoItemRepository,
    )
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.services.embedding_service import EmbeddingProvider
    from cosmic_notes.core.services.synthesis_service import SynthesisProvider


def get_supabase_client() -> Client:
    """Service-role client shared by every repository."""
    return get_supabase_admin_client()


def get_note_repository(client: Client = Depends(get_supabase_client)) -> NoteRepository:
    return SupabaseNoteRepository(client)


def get_tag_repository(client: Client = Depends(get_supabase_client)) -> TagRepository:
    return SupabaseTagRepository(client)


def get_cluster_repository(client: Client = Depends(get_supabase_client)) -> ClusterRepository:
    return SupabaseClusterRepository(client)


def get_tag_family_repository(client: Client = Depends(get_supabase_client)) -> TagFamilyRepository:
    return SupabaseTagFamilyRepository(client)


def get_todo_item_repository(client: Client = Depends(get_supabase_client)) -> TodoItemRepository:
    return SupabaseTodoItemRepository(client)


def get_embedding_provider() -> EmbeddingProvider:
    return OpenAIEmbeddingProvider(get_openai_client())


def get_synthesis_provider() -> SynthesisProvider:
    return OpenAISynthesisProvider(get_openai_client())


def get_tag_registry(
    tags: TagRepository = Depends(get_tag_repository),
    clusters: ClusterRepository = Depends(get_cluster_repository),
    notes: NoteRepository = Depends(get_note_repository),
) -> TagRegistry:
    """Build the registry and wire the dirty-flag listener onto it."""
    registry = TagRegistry(tags)
    registry.subscribe(DirtyFlagListener(tags=tags, clusters=clusters, notes=notes))
    return registry


def get_note_service(
    repo: NoteRepository = Depends(get_note_repository),
    registry: TagRegistry = Depends(get_tag_registry),
) -> NoteService:
    return NoteService(repo, registry, fields_generator=generate_note_fields)


def get_clustering_engine(
    tags: TagRepository = Depends(get_tag_repository),
    notes: NoteRepository = Depends(get_note_repository),
    clusters: ClusterRepository = Depends(get_cluster_repository),
    families: TagFamilyRepository = Depends(get_tag_family_repository),
    todos: TodoItemRepository = Depends(get_todo_item_repository),
    embedder: EmbeddingProvider = Depends(get_embedding_provider),
    synthesizer: SynthesisProvider = Depends(get_synthesis_provider),
) -> ClusteringEngine:
    return ClusteringEngine(
        tags=tags,
        notes=notes,
        clusters=clusters,
        families=families,
        todos=todos,
        embedder=embedder,
        synthesizer=synthesizer,
    )


def get_cluster_gc(
    tags: TagRepository = Depends(get_tag_repository),
    notes: NoteRepository = Depends(get_note_repository),
    clusters: ClusterRepository = Depends(get_cluster_repository),
    families: TagFamilyRepository = Depends(get_tag_family_repository),
) -> ClusterGarbageCollector:
    return ClusterGarbageCollector(tags=tags, notes=notes, clusters=clusters, families=families)


def get_gather_service(
    tags: TagRepository = Depends(get_tag_repository),
    registry: TagRegistry = Depends(get_tag_registry),
    engine: ClusteringEngine = Depends(get_clustering_engine),
    collector: ClusterGarbageCollector = Depends(get_cluster_gc),
) -> GatherService:
    return GatherService(tags=tags, registry=registry, engine=engine, collector=collector)
