from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, status

from cosmic_notes.api.v1.schemas.cluster import CleanupResult, ClusterRead
from cosmic_notes.core.errors import PersistenceError
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.schemas.clustering import GatherReport
from cosmic_notes.dependencies import get_cluster_gc, get_cluster_repository, get_gather_service
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from cosmic_notes.core.repositories.cluster_repository import ClusterRepository
    from cosmic_notes.core.services.cluster_gc import ClusterGarbageCollector
    from cosmic_notes.core.services.gather_service import GatherService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=list[ClusterRead])
async def list_clusters(
    tag_id: int | None = None,
    category: NoteCategory | None = None,
    clusters: ClusterRepository = Depends(get_cluster_repository),
):
    found = await clusters.list(tag_id=tag_id, category=category)
    return [ClusterRead.model_validate(c, from_attributes=True) for c in found]


@router.post("/gather", response_model=GatherReport)
async def gather_clusters(
    only_dirty: bool = False,
    service: GatherService = Depends(get_gather_service),
):
    """Re-cluster every tag whose note count changed, then prune stale clusters.

    Per-tag failures are reported in the body; the request fails only when
    the tag list itself cannot be read.
    """
    try:
        return await service.gather(only_dirty=only_dirty)
    except PersistenceError as err:
        logger.error("Gather failed: %s", err)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to cluster notes") from err


@router.post("/cleanup", response_model=CleanupResult)
async def cleanup_clusters(
    collector: ClusterGarbageCollector = Depends(get_cluster_gc),
):
    clusters_deleted = await collector.cleanup_obsolete_clusters()
    tags_deleted = await collector.cleanup_orphan_tags()
    return CleanupResult(clusters_deleted=clusters_deleted, tags_deleted=tags_deleted)


@router.get("/{cluster_id}", response_model=ClusterRead)
async def get_cluster(
    cluster_id: int,
    clusters: ClusterRepository = Depends(get_cluster_repository),
):
    cluster = await clusters.get(cluster_id)
    if not cluster:
        raise HTTPException(status_code=404, detail="Cluster not found")
    return ClusterRead.model_validate(cluster, from_attributes=True)
