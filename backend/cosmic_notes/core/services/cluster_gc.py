from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.utils.logging import cluster_context, get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cosmic_notes.core.models.note import NoteCategory
    from cosmic_notes.core.repositories.cluster_repository import ClusterRepository, TagFamilyRepository
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository

logger = get_logger(__name__)


class ClusterGarbageCollector:
    """Prunes clusters, tag families and tags that fell below the materiality threshold.

    Counts are re-derived from live associations at collection time, which may
    differ from what a concurrent gather saw; the next pass converges.
    """

    def __init__(
        self,
        *,
        tags: TagRepository,
        notes: NoteRepository,
        clusters: ClusterRepository,
        families: TagFamilyRepository,
        min_notes: int | None = None,
    ) -> None:
        self._tags = tags
        self._notes = notes
        self._clusters = clusters
        self._families = families
        self._min_notes = min_notes if min_notes is not None else settings.cluster_min_notes

    async def _category_counts(self, tag_id: int) -> Counter[NoteCategory]:
        note_ids = await self._tags.list_note_ids(tag_id)
        notes = await self._notes.list_by_ids(note_ids)
        return Counter(note.category for note in notes)

    async def cleanup_obsolete_clusters(self) -> int:
        """Delete clusters whose tag or category no longer has enough notes.

        A cluster is obsolete when its tag has fewer than `min_notes`
        associations in total, or when no note of its category remains under
        the tag. Obsolete clusters are removed in one batch.
        """
        clusters = await self._clusters.list()
        if not clusters:
            return 0

        live_counts = await self._tags.count_links_by_tag()
        category_counts: dict[int, Counter[NoteCategory]] = {}
        obsolete: list[int] = []

        for cluster in clusters:
            total = live_counts.get(cluster.tag, 0)
            if total < self._min_notes:
                obsolete.append(cluster.id)
                continue

            if cluster.tag not in category_counts:
                category_counts[cluster.tag] = await self._category_counts(cluster.tag)
            if category_counts[cluster.tag][cluster.category] < 1:
                obsolete.append(cluster.id)

        if not obsolete:
            return 0

        deleted = await self._clusters.delete_many(obsolete)
        logger.info("Deleted %d obsolete cluster(s)", deleted, extra={"cluster_ids": obsolete})
        return deleted

    async def reconcile_tag_families(self, live_counts: Mapping[str, int]) -> int:
        """Drop families (and their tags' clusters) whose live count is below threshold.

        `live_counts` maps tag name to live association count. Families still
        at or above the threshold keep their stored count, so the clustering
        engine sees the change and re-synthesizes.
        """
        families = await self._families.list_all()
        stale = [f for f in families if live_counts.get(f.tag, 0) < self._min_notes]
        if not stale:
            return 0

        for family in stale:
            tag = await self._tags.get_by_name(family.tag)
            if tag is not None and tag.id is not None:
                removed = await self._clusters.delete_for_tag(tag.id)
                if removed:
                    logger.info(
                        "Deleted %d cluster(s) of below-threshold tag %s",
                        removed,
                        family.tag,
                        extra=cluster_context(family.tag),
                    )

        deleted = await self._families.delete_many([f.id for f in stale])
        logger.info("Deleted %d tag family record(s)", deleted)
        return deleted

    async def cleanup_orphan_tags(self) -> int:
        """Delete tags that have no note associations left."""
        tags = await self._tags.list_all()
        live_counts = await self._tags.count_links_by_tag()

        deleted = 0
        for tag in tags:
            if tag.id is None or live_counts.get(tag.id, 0) > 0:
                continue
            await self._clusters.delete_for_tag(tag.id)
            await self._tags.delete(tag.id)
            logger.info("Deleted orphan tag %s", tag.name, extra=cluster_context(tag.name))
            deleted += 1
        return deleted
