from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from cosmic_notes.api.v1.schemas.note import NoteCreate, NoteRead, NoteTagsAdd, NoteUpdate
from cosmic_notes.background import generate_and_store_note_embedding, suggest_and_apply_note_tags
from cosmic_notes.config import settings
from cosmic_notes.core.errors import NotFoundError, PersistenceError
from cosmic_notes.dependencies import (
    get_embedding_provider,
    get_note_repository,
    get_note_service,
    get_tag_registry,
    get_tag_repository,
)

if TYPE_CHECKING:
    from cosmic_notes.core.models.note import Note
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.services.embedding_service import EmbeddingProvider
    from cosmic_notes.core.services.note_service import NoteService
    from cosmic_notes.core.services.tag_registry import TagRegistry

router = APIRouter()


def _schedule_note_jobs(
    background_tasks: BackgroundTasks,
    note: Note,
    *,
    embedder: EmbeddingProvider,
    notes: NoteRepository,
    tags: TagRepository,
    registry: TagRegistry,
) -> None:
    background_tasks.add_task(
        generate_and_store_note_embedding,
        note_id=note.id,
        title=note.title,
        content=note.content,
        embedder=embedder,
        notes=notes,
    )
    if settings.auto_suggest_tags:
        background_tasks.add_task(
            suggest_and_apply_note_tags,
            note_id=note.id,
            title=note.title,
            content=note.content,
            registry=registry,
            tags=tags,
        )


@router.post("/", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteCreate,
    background_tasks: BackgroundTasks,
    service: NoteService = Depends(get_note_service),
    embedder: EmbeddingProvider = Depends(get_embedding_provider),
    notes: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
    registry: TagRegistry = Depends(get_tag_registry),
):
    try:
        note = await service.create_note(payload)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    _schedule_note_jobs(background_tasks, note, embedder=embedder, notes=notes, tags=tags, registry=registry)
    return NoteRead.model_validate(note)


@router.get("/", response_model=list[NoteRead])
async def list_notes(
    limit: int = 50,
    offset: int = 0,
    service: NoteService = Depends(get_note_service),
):
    notes = await service.list_notes(limit=limit, offset=offset)
    return [NoteRead.model_validate(n) for n in notes]


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(
    note_id: int,
    service: NoteService = Depends(get_note_service),
):
    note = await service.get_note(note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return NoteRead.model_validate(note)


@router.patch("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: int,
    payload: NoteUpdate,
    background_tasks: BackgroundTasks,
    service: NoteService = Depends(get_note_service),
    embedder: EmbeddingProvider = Depends(get_embedding_provider),
    notes: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
    registry: TagRegistry = Depends(get_tag_registry),
):
    try:
        note = await service.update_note(note_id, payload)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    if {"title", "content"}.intersection(payload.model_fields_set):
        _schedule_note_jobs(background_tasks, note, embedder=embedder, notes=notes, tags=tags, registry=registry)
    return NoteRead.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: int,
    service: NoteService = Depends(get_note_service),
):
    deleted = await service.delete_note(note_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Note not found")
    return None


@router.get("/{note_id}/tags", response_model=list[int])
async def list_note_tags(
    note_id: int,
    service: NoteService = Depends(get_note_service),
    tags: TagRepository = Depends(get_tag_repository),
):
    if not await service.get_note(note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    return list(await tags.list_tag_ids_for_note(note_id))


@router.post("/{note_id}/tags", response_model=list[int])
async def add_note_tags(
    note_id: int,
    payload: NoteTagsAdd,
    service: NoteService = Depends(get_note_service),
):
    """Attach tags by name and/or id; returns the resolved tag ids."""
    try:
        return await service.add_tags(note_id, payload.tags, payload.tag_ids)
    except NotFoundError as err:
        raise HTTPException(status_code=404, detail=err.message) from err
    except PersistenceError as err:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=err.message) from err


@router.delete("/{note_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_note_tag(
    note_id: int,
    tag_id: int,
    service: NoteService = Depends(get_note_service),
):
    try:
        await service.remove_tag(note_id, tag_id)
    except NotFoundError as err:
        raise HTTPException(status_code=404, detail=err.message) from err
    except PersistenceError as err:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=err.message) from err
    return None
