from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, status

from cosmic_notes.api.v1.schemas.cluster import ClusterRead, TagRead, TodoItemRead
from cosmic_notes.core.errors import NotFoundError, PersistenceError, ProviderError
from cosmic_notes.core.schemas.clustering import TagClusteringResult
from cosmic_notes.dependencies import (
    get_cluster_repository,
    get_clustering_engine,
    get_tag_registry,
    get_tag_repository,
    get_todo_item_repository,
)
from cosmic_notes.utils.logging import cluster_context, get_logger

if TYPE_CHECKING:
    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.repositories.cluster_repository import ClusterRepository, TodoItemRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.services.clustering_service import ClusteringEngine
    from cosmic_notes.core.services.tag_registry import TagRegistry

logger = get_logger(__name__)

router = APIRouter()


async def _get_tag_or_404(tags: TagRepository, tag_id: int) -> Tag:
    tag = await tags.get(tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("/", response_model=list[TagRead])
async def list_tags(
    only_dirty: bool = False,
    tags: TagRepository = Depends(get_tag_repository),
):
    counts = await tags.count_links_by_tag()
    return [
        TagRead(id=t.id, name=t.name, dirty=t.dirty, note_count=counts.get(t.id, 0), created_at=t.created_at)
        for t in await tags.list_all(only_dirty=only_dirty)
    ]


@router.get("/{tag_id}", response_model=TagRead)
async def get_tag(
    tag_id: int,
    tags: TagRepository = Depends(get_tag_repository),
):
    tag = await _get_tag_or_404(tags, tag_id)
    count = await tags.count_links(tag_id)
    return TagRead(id=tag.id, name=tag.name, dirty=tag.dirty, note_count=count, created_at=tag.created_at)


@router.post("/{tag_id}/clusters", response_model=TagClusteringResult)
async def cluster_tag(
    tag_id: int,
    tags: TagRepository = Depends(get_tag_repository),
    engine: ClusteringEngine = Depends(get_clustering_engine),
    registry: TagRegistry = Depends(get_tag_registry),
):
    """Re-cluster one tag now, regardless of whether its note count changed."""
    tag = await _get_tag_or_404(tags, tag_id)
    count = await tags.count_links(tag_id)
    try:
        result = await engine.process_tag_clustering(tag.name, count, force=True)
    except NotFoundError as err:
        raise HTTPException(status_code=404, detail=err.message) from err
    except (ProviderError, PersistenceError) as err:
        logger.error("On-demand clustering failed: %s", err, extra=cluster_context(tag.name))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=err.message) from err

    await registry.clear_dirty([tag_id])
    return result


@router.get("/{tag_id}/clusters", response_model=list[ClusterRead])
async def list_tag_clusters(
    tag_id: int,
    tags: TagRepository = Depends(get_tag_repository),
    clusters: ClusterRepository = Depends(get_cluster_repository),
):
    await _get_tag_or_404(tags, tag_id)
    return [ClusterRead.model_validate(c, from_attributes=True) for c in await clusters.list(tag_id=tag_id)]


@router.get("/{tag_id}/todos", response_model=list[TodoItemRead])
async def list_tag_todos(
    tag_id: int,
    tags: TagRepository = Depends(get_tag_repository),
    todos: TodoItemRepository = Depends(get_todo_item_repository),
):
    await _get_tag_or_404(tags, tag_id)
    return [TodoItemRead.model_validate(i, from_attributes=True) for i in await todos.list_for_tag(tag_id)]
