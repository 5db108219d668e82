"""
End-of-day migration.

At local midnight in each user's timezone, the todos the user created during
the local day that just ended are attached to the diary entry dated with that
day. The user's ``lastEntryDate`` (the local date the migration ran on) guards
against processing the same midnight twice.

The cycle lock only serialises cycles inside one process. When each cycle runs
in its own process (the cron job), the ``lastEntryDate`` compare-and-swap and
the unique ``(userId, date)`` index on migrated entries are what keep
overlapping runs from duplicating work.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from common.utils.timezones import (
    DEFAULT_TIMEZONE,
    as_date_string,
    is_local_midnight,
    local_date_string,
    local_day_bounds,
    previous_date_string,
)
from journal.services.diary.diary_service import DiaryService
from journal.services.todo.todo_service import TodoService
from journal.services.user.user_service import UserService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EndOfDayMigrator:
    """
    Moves each user's todos for the local day that just ended into that day's
    diary entry.

    Per user, the move is an idempotent append keyed by ``(userId, date)`` and
    is followed by a conditional write of ``lastEntryDate``. A crash between
    the two only leads to a repeat of the append, which adds nothing.
    """

    def __init__(
        self,
        user_service: UserService,
        todo_service: TodoService,
        diary_service: DiaryService,
        clock: Optional[Clock] = None,
        batch_size: int = 500,
    ):
        """
        Initialize EndOfDayMigrator.

        Args:
            user_service: For scanning users and writing the day guard
            todo_service: For the todos created during the day
            diary_service: For the day's diary entry
            clock: Returns the current UTC time
            batch_size: Cursor batch size while scanning users
        """
        self._user_service = user_service
        self._todo_service = todo_service
        self._diary_service = diary_service
        self._clock = clock or _utcnow
        self._batch_size = batch_size
        self._cycle_lock = asyncio.Lock()

    async def run_migration_cycle(self) -> Dict[str, Any]:
        """
        Evaluate every user once.

        A cycle that starts while another is still running in this process is
        skipped.

        Returns:
            Dict with cycle counts and per-user errors
        """
        start_time = self._clock()
        results: Dict[str, Any] = {
            "startTime": start_time.isoformat(),
            "usersScanned": 0,
            "usersMigrated": 0,
            "todosMoved": 0,
            "skipped": 0,
            "errors": [],
            "cycleSkipped": False,
        }

        if self._cycle_lock.locked():
            logger.warning("Previous end-of-day cycle still running, skipping this one")
            results["cycleSkipped"] = True
            results["endTime"] = self._clock().isoformat()
            return results

        async with self._cycle_lock:
            async for user in self._user_service.iter_users(self._batch_size):
                results["usersScanned"] += 1
                try:
                    moved = await self.migrate_user(user)
                except Exception as e:
                    error_msg = f"Failed to migrate todos for user {user.get('_id')}: {str(e)}"
                    logger.error(error_msg)
                    results["errors"].append(error_msg)
                    continue

                if moved is None:
                    results["skipped"] += 1
                else:
                    results["usersMigrated"] += 1
                    results["todosMoved"] += moved

        results["endTime"] = self._clock().isoformat()

        logger.info(
            f"End-of-day cycle completed. "
            f"Scanned: {results['usersScanned']}, "
            f"Migrated: {results['usersMigrated']}, "
            f"Todos moved: {results['todosMoved']}, "
            f"Errors: {len(results['errors'])}"
        )
        return results

    async def migrate_user(self, user: Dict[str, Any], now: Optional[datetime] = None) -> Optional[int]:
        """
        Run the end-of-day step for one user.

        At local 00:00 of ``local_date`` the day that just ended is closed:
        todos created during it go into the entry dated with that day, and
        ``lastEntryDate`` is set to ``local_date``.

        Args:
            user: User document (needs ``_id`` and profile settings/stats)
            now: Evaluation time, defaults to the migrator's clock

        Returns:
            Number of todos moved, or None when the user was skipped
        """
        now = now or self._clock()
        profile = user.get("profile") or {}
        tz_name = (profile.get("settings") or {}).get("timezone") or DEFAULT_TIMEZONE

        if not is_local_midnight(tz_name, now):
            return None

        local_date = local_date_string(tz_name, now)
        last_entry_date = as_date_string((profile.get("diaryStats") or {}).get("lastEntryDate"))
        if last_entry_date == local_date:
            return None

        user_id = user["_id"]
        closed_date = previous_date_string(local_date)
        start, end = local_day_bounds(closed_date, tz_name)
        todos = await self._todo_service.find_created_in_range(user_id, start, end)

        if todos:
            await self._diary_service.append_todos_to_day(
                user_id,
                closed_date,
                [todo["_id"] for todo in todos],
            )
            if await self._diary_service.claim_entry_count(user_id, closed_date):
                await self._user_service.adjust_entry_count(user_id, 1)

        advanced = await self._user_service.set_last_entry_date(user_id, local_date)
        if not advanced:
            # Another worker finished this day first
            logger.info(f"Day {closed_date} already recorded for user {user_id}")
            return None

        if todos:
            logger.info(f"[{user.get('email')}] Moved {len(todos)} todos to diary on {closed_date}")
        return len(todos)
