"""
FastAPI router for diary endpoints.

Entries are scoped to the authenticated user.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from common.utils import list_response, success_response
from journal.dependencies import (
    get_diary_service,
    get_todo_service,
    get_user_service,
    require_auth,
)
from journal.pipelines import diary as diary_pipelines
from journal.schemas.diary import DATE_PATTERN, DiaryCreateRequest, DiaryUpdateRequest
from journal.services.diary import DiaryService, format_entry, format_entry_summary
from journal.services.todo import TodoService
from journal.services.user import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/diary", tags=["diary"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: DiaryCreateRequest,
    user_id: Annotated[str, Depends(require_auth)],
    diary_service: Annotated[DiaryService, Depends(get_diary_service)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """
    Create a diary entry.

    Images must already be uploaded; pass their storage keys (and URLs).
    """
    entry = await diary_pipelines.create_entry_pipeline(
        diary_service,
        user_service,
        user_id,
        body.model_dump(),
    )
    return success_response(entry, message="Diary entry created")


@router.get("")
async def list_entries(
    user_id: Annotated[str, Depends(require_auth)],
    diary_service: Annotated[DiaryService, Depends(get_diary_service)],
):
    """List the current user's entries, newest first."""
    entries = await diary_service.list_entries(user_id)
    return list_response([format_entry_summary(entry) for entry in entries])


@router.get("/range/date")
async def entries_in_range(
    user_id: Annotated[str, Depends(require_auth)],
    diary_service: Annotated[DiaryService, Depends(get_diary_service)],
    start: str = Query(..., pattern=DATE_PATTERN, description="YYYY-MM-DD"),
    end: str = Query(..., pattern=DATE_PATTERN, description="YYYY-MM-DD"),
):
    """Entries dated between start and end, inclusive."""
    entries = await diary_pipelines.entries_in_range_pipeline(diary_service, user_id, start, end)
    return list_response(entries)


@router.get("/time/{time_type}/{value}")
async def entries_by_time(
    time_type: str,
    value: str,
    user_id: Annotated[str, Depends(require_auth)],
    diary_service: Annotated[DiaryService, Depends(get_diary_service)],
):
    """Entries for a year, a month (1-12) or a day of month (1-31)."""
    entries = await diary_pipelines.entries_by_time_pipeline(diary_service, user_id, time_type, value)
    return list_response(entries)


@router.get("/{entry_id}")
async def get_entry(
    entry_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    diary_service: Annotated[DiaryService, Depends(get_diary_service)],
    todo_service: Annotated[TodoService, Depends(get_todo_service)],
):
    """Get an entry with its todos."""
    entry = await diary_pipelines.get_entry_pipeline(diary_service, todo_service, user_id, entry_id)
    return success_response(entry)


@router.put("/{entry_id}")
async def update_entry(
    entry_id: str,
    body: DiaryUpdateRequest,
    user_id: Annotated[str, Depends(require_auth)],
    diary_service: Annotated[DiaryService, Depends(get_diary_service)],
):
    """Update an entry. Only provided fields change."""
    entry = await diary_service.update_entry(user_id, entry_id, body.model_dump(exclude_unset=True))
    return success_response(format_entry(entry), message="Diary entry updated")


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    diary_service: Annotated[DiaryService, Depends(get_diary_service)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Delete an entry."""
    result = await diary_pipelines.delete_entry_pipeline(diary_service, user_service, user_id, entry_id)
    return success_response(result, message="Diary entry deleted")
