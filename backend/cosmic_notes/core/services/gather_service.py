from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.schemas.clustering import CreatedCluster, GatherReport, TagFailure
from cosmic_notes.utils.logging import cluster_context, get_logger

if TYPE_CHECKING:
    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.schemas.clustering import TagClusteringResult
    from cosmic_notes.core.services.cluster_gc import ClusterGarbageCollector
    from cosmic_notes.core.services.clustering_service import ClusteringEngine
    from cosmic_notes.core.services.tag_registry import TagRegistry

logger = get_logger(__name__)


class GatherService:
    """Batch driver: reconcile, cluster every eligible tag, then collect garbage."""

    def __init__(
        self,
        *,
        tags: TagRepository,
        registry: TagRegistry,
        engine: ClusteringEngine,
        collector: ClusterGarbageCollector,
        max_concurrency: int | None = None,
        min_notes: int | None = None,
    ) -> None:
        self._tags = tags
        self._registry = registry
        self._engine = engine
        self._collector = collector
        self._max_concurrency = max_concurrency or settings.gather_max_concurrency
        self._min_notes = min_notes if min_notes is not None else settings.cluster_min_notes

    async def gather(self, *, only_dirty: bool = False) -> GatherReport:
        """Run one gather pass.

        Only a failure to read the tag list or the live counts propagates;
        per-tag failures are logged and reported in `failures`.
        """
        all_tags = await self._tags.list_all()
        live_counts = await self._tags.count_links_by_tag()
        counts_by_name = {t.name: live_counts.get(t.id, 0) for t in all_tags if t.id is not None}

        report = GatherReport()
        report.tag_families_deleted = await self._collector.reconcile_tag_families(counts_by_name)

        candidates = [t for t in all_tags if t.dirty] if only_dirty else all_tags
        eligible = [t for t in candidates if counts_by_name.get(t.name, 0) >= self._min_notes]
        logger.info(
            "Gather started: %d eligible tag(s) of %d",
            len(eligible),
            len(all_tags),
            extra={"only_dirty": only_dirty},
        )

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _process(tag: Tag) -> TagClusteringResult:
            async with semaphore:
                return await self._engine.process_tag_clustering(tag.name, counts_by_name[tag.name])

        # Isolated per tag: one failure must not cancel the others
        outcomes = await asyncio.gather(*(_process(t) for t in eligible), return_exceptions=True)

        succeeded: list[int] = []
        for tag, outcome in zip(eligible, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(
                    "Clustering failed for tag %s: %s",
                    tag.name,
                    outcome,
                    exc_info=outcome,
                    extra=cluster_context(tag.name),
                )
                report.tags_failed += 1
                report.failures.append(
                    TagFailure(tag=tag.name, error=str(outcome), error_type=type(outcome).__name__)
                )
                continue

            report.tags_processed += 1
            report.details.append(outcome)
            if not outcome.count_changed:
                # Skipped tags keep their dirty flag until a reclustering runs
                report.tags_skipped += 1
                continue

            succeeded.append(tag.id)
            report.categories_processed += outcome.categories_processed
            report.clusters_updated += outcome.clusters_updated
            report.clusters_created.extend(
                CreatedCluster(tag=tag.name, category=r.category, note_count=r.note_count)
                for r in outcome.category_results
                if r.created
            )

        if succeeded:
            await self._registry.clear_dirty(succeeded)

        report.clusters_deleted = await self._collector.cleanup_obsolete_clusters()
        report.tags_deleted = await self._collector.cleanup_orphan_tags()

        logger.info(
            "Gather finished: %d processed, %d skipped, %d failed, %d created, %d updated, %d deleted",
            report.tags_processed,
            report.tags_skipped,
            report.tags_failed,
            len(report.clusters_created),
            report.clusters_updated,
            report.clusters_deleted,
        )
        return report
