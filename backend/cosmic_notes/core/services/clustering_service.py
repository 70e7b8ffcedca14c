"""Per-tag clustering: decide whether a tag changed, then re-synthesize its clusters.

Processing a tag happens in two phases. All categories are prepared
concurrently (provider calls only, nothing written); the results are
persisted only once every category prepared successfully, so a provider
failure leaves the tag's stored clusters and family count untouched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cosmic_notes.core.errors import NotFoundError
from cosmic_notes.core.models.note import NoteCategory
from cosmic_notes.core.prompts.strategies import OutputKind, get_synthesis_strategy
from cosmic_notes.core.schemas.clustering import CategoryClusterResult, TagClusteringResult
from cosmic_notes.core.services.embedding_service import build_cluster_text
from cosmic_notes.utils.logging import cluster_context, get_logger
from cosmic_notes.utils.text import linkify_summary, normalize_tag_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import Note
    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.repositories.cluster_repository import (
        ClusterRepository,
        TagFamilyRepository,
        TodoItemRepository,
    )
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.services.embedding_service import EmbeddingProvider
    from cosmic_notes.core.services.synthesis_service import SynthesisProvider

logger = get_logger(__name__)


@dataclass
class PreparedCluster:
    """Synthesized output for one (tag, category), not yet persisted."""

    category: NoteCategory
    note_count: int
    summary: str = ""
    embedding: list[float] | None = None
    new_items: list[str] = field(default_factory=list)


def group_notes_by_category(notes: Sequence[Note]) -> dict[NoteCategory, list[Note]]:
    groups: dict[NoteCategory, list[Note]] = {}
    for note in notes:
        groups.setdefault(note.category, []).append(note)
    return groups


class ClusteringEngine:
    def __init__(
        self,
        *,
        tags: TagRepository,
        notes: NoteRepository,
        clusters: ClusterRepository,
        families: TagFamilyRepository,
        todos: TodoItemRepository,
        embedder: EmbeddingProvider,
        synthesizer: SynthesisProvider,
        link_path: str | None = None,
    ) -> None:
        self._tags = tags
        self._notes = notes
        self._clusters = clusters
        self._families = families
        self._todos = todos
        self._embedder = embedder
        self._synthesizer = synthesizer
        self._link_path = link_path

    async def get_notes_for_tag(self, tag_name: str) -> list[Note]:
        tag = await self._tags.get_by_name(normalize_tag_name(tag_name))
        if tag is None or tag.id is None:
            return []
        note_ids = await self._tags.list_note_ids(tag.id)
        return list(await self._notes.list_by_ids(note_ids))

    async def process_tag_clustering(
        self,
        tag_name: str,
        current_note_count: int,
        *,
        force: bool = False,
    ) -> TagClusteringResult:
        """Re-cluster a tag if its live note count moved since the last run.

        `current_note_count` is the live association count computed by the
        caller. With `force`, the count comparison is bypassed.

        Raises:
            NotFoundError: the tag no longer exists
            ProviderError: synthesis or embedding failed; nothing was written
            PersistenceError: a store write failed part way through
        """
        name = normalize_tag_name(tag_name)
        context = cluster_context(name, count=current_note_count)

        family = await self._families.get_by_tag(name)
        if family is None:
            family = await self._families.create(name, 0)
            logger.info("Created tag family for %s", name, extra=context)
        elif family.tag_count == current_note_count and not force:
            logger.debug("Skipping %s: note count unchanged at %d", name, current_note_count, extra=context)
            return TagClusteringResult(tag=name, count_changed=False)

        tag = await self._tags.get_by_name(name)
        if tag is None or tag.id is None:
            raise NotFoundError(f"Tag not found: {name}", details={"tag": name})

        notes = await self.get_notes_for_tag(name)
        groups = group_notes_by_category(notes)
        logger.info(
            "Clustering %s: %d note(s) in %d category group(s)",
            name,
            len(notes),
            len(groups),
            extra=context,
        )

        # No return_exceptions: the first failure abandons the whole tag
        prepared = await asyncio.gather(
            *(self._prepare_cluster(tag, category, group) for category, group in groups.items())
        )

        result = TagClusteringResult(tag=name, count_changed=True, notes_processed=len(notes))
        for outcome in prepared:
            category_result = await self._store_cluster(tag, outcome)
            result.category_results.append(category_result)
            result.categories_processed += 1
            result.todo_items_added += category_result.todo_items_added
            if category_result.created:
                result.clusters_created += 1
            else:
                result.clusters_updated += 1

        await self._families.update_count(family.id, current_note_count)
        logger.info(
            "Clustered %s: %d created, %d updated",
            name,
            result.clusters_created,
            result.clusters_updated,
            extra=context,
        )
        return result

    async def create_or_update_cluster(
        self,
        tag: Tag,
        category: NoteCategory,
        notes: Sequence[Note],
    ) -> CategoryClusterResult:
        """Synthesize and store the cluster for a single (tag, category) pair."""
        prepared = await self._prepare_cluster(tag, category, notes)
        return await self._store_cluster(tag, prepared)

    async def _prepare_cluster(
        self,
        tag: Tag,
        category: NoteCategory,
        notes: Sequence[Note],
    ) -> PreparedCluster:
        strategy = get_synthesis_strategy(category)
        prepared = PreparedCluster(category=category, note_count=len(notes))

        if strategy.output is OutputKind.ITEMS:
            prepared.new_items = await self._generate_todo_items(tag, notes)
        else:
            prompt = strategy.render_prompt(notes)
            summary = await self._synthesizer.synthesize(strategy, prompt)
            prepared.summary = linkify_summary(summary, self._link_path)
        prepared.embedding = await self._embedder.embed(build_cluster_text(notes))
        return prepared

    async def _generate_todo_items(self, tag: Tag, notes: Sequence[Note]) -> list[str]:
        strategy = get_synthesis_strategy(NoteCategory.TODO)
        existing = [item.item for item in await self._todos.list_for_tag(tag.id)]
        prompt = strategy.render_items_prompt(notes, existing)
        generated = await self._synthesizer.generate_items(strategy, prompt, existing)

        # Exact text comparison, no case or whitespace folding
        seen = set(existing)
        new_items: list[str] = []
        for item in generated:
            if item and item not in seen:
                seen.add(item)
                new_items.append(item)

        logger.debug(
            "Generated %d to-do item(s), %d new",
            len(generated),
            len(new_items),
            extra=cluster_context(tag.name, NoteCategory.TODO.value),
        )
        return new_items

    async def _store_cluster(self, tag: Tag, prepared: PreparedCluster) -> CategoryClusterResult:
        cluster, created = await self._clusters.upsert_cluster(
            tag_id=tag.id,
            category=prepared.category,
            note_count=prepared.note_count,
            summary=prepared.summary,
            embedding=prepared.embedding,
        )
        added = 0
        if prepared.new_items:
            added = len(await self._todos.create_many(tag.id, prepared.new_items))

        return CategoryClusterResult(
            category=prepared.category,
            note_count=prepared.note_count,
            cluster_id=cluster.id,
            created=created,
            todo_items_added=added,
        )
