"""
Dashboard statistics aggregation service.

Combines diary and todo data into the numbers shown on the dashboard.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from common.utils.timezones import DATE_FORMAT, local_now
from journal.services.diary.diary_service import DiaryService, format_entry_summary
from journal.services.todo.todo_service import TodoService

logger = logging.getLogger(__name__)

RECENT_ENTRIES_LIMIT = 5


def calculate_streak(entry_dates: Iterable[str], today: str) -> int:
    """
    Consecutive days with at least one entry.

    The streak must end today or yesterday; an older last entry means the
    streak is broken.

    Args:
        entry_dates: Dates with entries (YYYY-MM-DD)
        today: The user's local date (YYYY-MM-DD)

    Returns:
        Streak length in days
    """
    dates = set(entry_dates)
    current = datetime.strptime(today, DATE_FORMAT).date()

    if current.strftime(DATE_FORMAT) not in dates:
        current -= timedelta(days=1)

    streak = 0
    while current.strftime(DATE_FORMAT) in dates:
        streak += 1
        current -= timedelta(days=1)
    return streak


class DashboardStatsService:
    """
    Aggregates a user's journal stats.
    """

    def __init__(self, diary_service: DiaryService, todo_service: TodoService):
        """
        Initialize DashboardStatsService.

        Args:
            diary_service: For entry counts, moods and dates
            todo_service: For todo counts
        """
        self._diary_service = diary_service
        self._todo_service = todo_service

    async def get_stats(
        self,
        user_id: str,
        timezone_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Aggregate stats for the dashboard.

        Args:
            user_id: User ID
            timezone_name: User's IANA timezone, for the streak's "today"
            now: Current time override

        Returns:
            dict with totals, streak, mood distribution and recent entries
        """
        entry_dates = await self._diary_service.get_entry_dates(user_id)
        today = local_now(timezone_name, now).strftime(DATE_FORMAT)

        recent = await self._diary_service.recent_entries(user_id, RECENT_ENTRIES_LIMIT)
        moods = await self._diary_service.mood_distribution(user_id)

        total_todos = await self._todo_service.count_todos(user_id)
        completed_todos = await self._todo_service.count_todos(user_id, status="done")

        return {
            "totalEntries": sum(moods.values()),
            "totalTodos": total_todos,
            "completedTodos": completed_todos,
            "currentStreak": calculate_streak(entry_dates, today),
            "moodDistribution": moods,
            "recentEntries": [format_entry_summary(entry) for entry in recent],
        }
