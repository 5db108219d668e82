"""
Diary pipeline functions.

Orchestrates diary entries together with the owner's stats and todos.
"""

import logging
from typing import Any, Dict, List, Optional

from common.utils.exceptions import NotFoundException
from common.utils.timezones import local_date_string
from journal.services.diary import DiaryService, format_entry, format_entry_summary
from journal.services.todo import TodoService, format_todo
from journal.services.user import UserService

logger = logging.getLogger(__name__)


def _user_timezone(user: Optional[dict]) -> Optional[str]:
    profile = (user or {}).get("profile") or {}
    return (profile.get("settings") or {}).get("timezone")


async def create_entry_pipeline(
    diary_service: DiaryService,
    user_service: UserService,
    user_id: str,
    data: Dict[str, Any],
) -> dict:
    """
    Create an entry and bump the user's entry counter.

    The entry's date defaults to today in the user's timezone.

    Returns:
        Formatted entry
    """
    date = data.pop("date", None)
    if not date:
        user = await user_service.get_user_by_id(user_id)
        date = local_date_string(_user_timezone(user))

    entry = await diary_service.create_entry(user_id, data, date)
    await user_service.adjust_entry_count(user_id, 1)

    return format_entry(entry, todos=[])


async def get_entry_pipeline(
    diary_service: DiaryService,
    todo_service: TodoService,
    user_id: str,
    entry_id: str,
) -> dict:
    """Load an entry with its referenced todos populated."""
    entry = await diary_service.get_entry(user_id, entry_id)
    todos = await todo_service.get_todos_by_ids(user_id, entry.get("todoIds") or [])
    return format_entry(entry, todos=[format_todo(todo) for todo in todos])


async def delete_entry_pipeline(
    diary_service: DiaryService,
    user_service: UserService,
    user_id: str,
    entry_id: str,
) -> dict:
    """Delete an entry and decrement the user's entry counter."""
    entry = await diary_service.delete_entry(user_id, entry_id)
    await user_service.adjust_entry_count(user_id, -1)
    return {"_id": str(entry["_id"])}


def _require_entries(entries: List[dict]) -> List[dict]:
    if not entries:
        raise NotFoundException(
            message="No diary entries found",
            code="ENTRIES_NOT_FOUND"
        )
    return [format_entry_summary(entry) for entry in entries]


async def entries_in_range_pipeline(
    diary_service: DiaryService,
    user_id: str,
    start: str,
    end: str,
) -> List[dict]:
    """Entries dated from ``start`` to ``end`` inclusive; 404 when none."""
    entries = await diary_service.get_entries_in_range(user_id, start, end)
    return _require_entries(entries)


async def entries_by_time_pipeline(
    diary_service: DiaryService,
    user_id: str,
    time_type: str,
    value: str,
) -> List[dict]:
    """Entries for a year, month or day of month; 404 when none."""
    entries = await diary_service.get_entries_by_time(user_id, time_type, value)
    return _require_entries(entries)
