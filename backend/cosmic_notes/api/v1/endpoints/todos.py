from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException

from cosmic_notes.api.v1.schemas.cluster import TodoItemRead, TodoItemUpdate
from cosmic_notes.dependencies import get_todo_item_repository

if TYPE_CHECKING:
    from cosmic_notes.core.repositories.cluster_repository import TodoItemRepository

router = APIRouter()


@router.patch("/{item_id}", response_model=TodoItemRead)
async def update_todo_item(
    item_id: int,
    payload: TodoItemUpdate,
    todos: TodoItemRepository = Depends(get_todo_item_repository),
):
    item = await todos.set_done(item_id, payload.done)
    if not item:
        raise HTTPException(status_code=404, detail="To-do item not found")
    return TodoItemRead.model_validate(item, from_attributes=True)
