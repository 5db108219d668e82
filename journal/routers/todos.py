"""
FastAPI router for todo endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from common.utils import list_response, success_response
from journal.dependencies import get_todo_service, require_auth
from journal.schemas.todo import TodoCreateRequest, TodoUpdateRequest
from journal.services.todo import TodoService, format_todo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/todos", tags=["todos"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_todo(
    body: TodoCreateRequest,
    user_id: Annotated[str, Depends(require_auth)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """Create a todo."""
    todo = await todo_service.create_todo(user_id, body.model_dump())
    return success_response(format_todo(todo), message="Todo created")


@router.get("")
async def list_todos(
    user_id: Annotated[str, Depends(require_auth)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """List the current user's todos, newest first."""
    todos = await todo_service.list_todos(user_id)
    return list_response([format_todo(todo) for todo in todos])


@router.get("/priority/{priority}")
async def list_todos_by_priority(
    priority: str,
    user_id: Annotated[str, Depends(require_auth)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """List todos with the given priority (low, medium, high)."""
    todos = await todo_service.list_by_priority(user_id, priority)
    return list_response([format_todo(todo) for todo in todos])


@router.get("/{todo_id}")
async def get_todo(
    todo_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """Get a single todo."""
    todo = await todo_service.get_todo(user_id, todo_id)
    return success_response(format_todo(todo))


@router.put("/{todo_id}")
async def update_todo(
    todo_id: str,
    body: TodoUpdateRequest,
    user_id: Annotated[str, Depends(require_auth)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """Update a todo. Only provided fields change."""
    todo = await todo_service.update_todo(user_id, todo_id, body.model_dump(exclude_unset=True))
    return success_response(format_todo(todo), message="Todo updated")


@router.patch("/{todo_id}/status/{new_status}")
async def set_todo_status(
    todo_id: str,
    new_status: str,
    user_id: Annotated[str, Depends(require_auth)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """Move a todo to todo, in-progress or done."""
    todo = await todo_service.set_status(user_id, todo_id, new_status)
    return success_response(format_todo(todo))


@router.delete("/{todo_id}")
async def delete_todo(
    todo_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """Delete a todo."""
    todo = await todo_service.delete_todo(user_id, todo_id)
    return success_response({"_id": str(todo["_id"])}, message="Todo deleted")
