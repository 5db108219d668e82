"""
Diary entry service.

Owns the ``diaryEntries`` collection. Entries are keyed for the end-of-day
migration by ``(userId, date)`` where ``date`` is a local YYYY-MM-DD string.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import BadRequestException, NotFoundException
from common.utils.timezones import as_date_string
from journal.database import DIARY_ENTRIES
from journal.services.user.user_service import to_object_id

logger = logging.getLogger(__name__)

VALID_MOODS = ("happy", "sad", "neutral", "excited", "angry")
TIME_TYPES = ("year", "month", "day")


def _time_pattern(time_type: str, value: str) -> str:
    """Anchored regex on the YYYY-MM-DD date for a year/month/day lookup."""
    if time_type not in TIME_TYPES:
        raise BadRequestException(
            message="Invalid time type. Use year, month, or day",
            code="INVALID_TIME_TYPE"
        )
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise BadRequestException(
            message=f"Invalid {time_type} value",
            code="INVALID_TIME_VALUE"
        )

    if time_type == "year":
        return rf"^{number:04d}-"
    if time_type == "month":
        return rf"^\d{{4}}-{number:02d}-"
    return rf"^\d{{4}}-\d{{2}}-{number:02d}$"


class DiaryService:
    """
    Manages diary entries for a user.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db
        self._entries_collection = db[DIARY_ENTRIES]

    async def create_entry(self, user_id: str, data: Dict[str, Any], date: str) -> dict:
        """
        Create a diary entry.

        Args:
            user_id: Owner's MongoDB ID
            data: title, entry, mood, images, videos, links
            date: Calendar date the entry belongs to (YYYY-MM-DD)

        Returns:
            Created entry document
        """
        now = datetime.now(timezone.utc)
        entry_doc = {
            "title": data["title"],
            "entry": data["entry"],
            "mood": data.get("mood") or "neutral",
            "images": data.get("images") or [],
            "videos": data.get("videos") or [],
            "links": data.get("links") or [],
            "userId": ObjectId(user_id),
            "todoIds": [],
            "date": date,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._entries_collection.insert_one(entry_doc)
        entry_doc["_id"] = result.inserted_id

        logger.info(f"Diary entry {result.inserted_id} created for user {user_id}")
        return entry_doc

    async def list_entries(self, user_id: str) -> List[dict]:
        """All of the user's entries, newest first."""
        cursor = self._entries_collection.find(
            {"userId": ObjectId(user_id)}
        ).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def recent_entries(self, user_id: str, limit: int = 5) -> List[dict]:
        """The user's latest entries."""
        cursor = self._entries_collection.find(
            {"userId": ObjectId(user_id)}
        ).sort("createdAt", -1).limit(limit)
        return await cursor.to_list(length=limit)

    async def get_entry(self, user_id: str, entry_id: str) -> dict:
        """
        Load one of the user's entries.

        Raises:
            NotFoundException: Missing, malformed id, or owned by someone else
        """
        oid = to_object_id(entry_id)
        entry = None
        if oid is not None:
            entry = await self._entries_collection.find_one(
                {"_id": oid, "userId": ObjectId(user_id)}
            )
        if not entry:
            raise NotFoundException(message="Diary entry not found", code="ENTRY_NOT_FOUND")
        return entry

    async def update_entry(self, user_id: str, entry_id: str, updates: Dict[str, Any]) -> dict:
        """Partially update an entry, returning the new document. Null fields are ignored."""
        updates = {key: value for key, value in updates.items() if value is not None}
        oid = to_object_id(entry_id)
        entry = None
        if oid is not None:
            entry = await self._entries_collection.find_one_and_update(
                {"_id": oid, "userId": ObjectId(user_id)},
                {"$set": {**updates, "updatedAt": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        if not entry:
            raise NotFoundException(message="Diary entry not found", code="ENTRY_NOT_FOUND")
        return entry

    async def delete_entry(self, user_id: str, entry_id: str) -> dict:
        """Delete an entry, returning the removed document."""
        oid = to_object_id(entry_id)
        entry = None
        if oid is not None:
            entry = await self._entries_collection.find_one_and_delete(
                {"_id": oid, "userId": ObjectId(user_id)}
            )
        if not entry:
            raise NotFoundException(message="Diary entry not found", code="ENTRY_NOT_FOUND")

        logger.info(f"Diary entry {entry_id} deleted for user {user_id}")
        return entry

    async def get_entries_in_range(self, user_id: str, start: str, end: str) -> List[dict]:
        """
        Entries whose date falls within ``[start, end]`` (inclusive).

        Args:
            start: First date, YYYY-MM-DD
            end: Last date, YYYY-MM-DD
        """
        cursor = self._entries_collection.find(
            {"userId": ObjectId(user_id), "date": {"$gte": start, "$lte": end}}
        ).sort("date", -1)
        return await cursor.to_list(length=None)

    async def get_entries_by_time(self, user_id: str, time_type: str, value: str) -> List[dict]:
        """
        Entries in a given year, month (of any year) or day of month.

        Raises:
            BadRequestException: Unknown type or non-numeric value
        """
        pattern = _time_pattern(time_type, value)
        cursor = self._entries_collection.find(
            {"userId": ObjectId(user_id), "date": {"$regex": pattern}}
        ).sort("date", -1)
        return await cursor.to_list(length=None)

    async def get_entry_dates(self, user_id: str) -> List[str]:
        """Distinct calendar dates the user has entries for."""
        dates = await self._entries_collection.distinct("date", {"userId": ObjectId(user_id)})
        return [d for d in (as_date_string(value) for value in dates) if d]

    async def mood_distribution(self, user_id: str) -> Dict[str, int]:
        """Count of entries per mood."""
        pipeline = [
            {"$match": {"userId": ObjectId(user_id)}},
            {"$group": {"_id": "$mood", "count": {"$sum": 1}}},
        ]
        cursor = self._entries_collection.aggregate(pipeline)
        return {
            row["_id"] or "neutral": row["count"]
            async for row in cursor
        }

    async def append_todos_to_day(
        self,
        user_id,
        date: str,
        todo_ids: List[ObjectId],
    ) -> None:
        """
        Append todo references to the user's entry for ``date``.

        Creates the entry when none exists. ``$addToSet`` makes the append
        idempotent, so repeating it for the same day cannot duplicate ids.
        Entries created here carry ``entryCounted: False`` until
        ``claim_entry_count`` marks them.

        Args:
            user_id: Owner's MongoDB ID
            date: Local calendar date (YYYY-MM-DD)
            todo_ids: Todo ids in creation order
        """
        now = datetime.now(timezone.utc)
        query = {"userId": to_object_id(user_id), "date": date}
        update = {
            "$addToSet": {"todoIds": {"$each": list(todo_ids)}},
            "$set": {"updatedAt": now},
            "$setOnInsert": {
                "title": f"Todos for {date}",
                "entry": "",
                "mood": "neutral",
                "images": [],
                "videos": [],
                "links": [],
                "entryCounted": False,
                "createdAt": now,
            },
        }
        try:
            await self._entries_collection.update_one(query, update, upsert=True)
        except DuplicateKeyError:
            # A concurrent worker inserted the day's entry first
            await self._entries_collection.update_one(query, update)

    async def claim_entry_count(self, user_id, date: str) -> bool:
        """
        Mark the day's migrated entry as counted in the user's stats.

        Returns:
            True for exactly one caller per entry created by the migration;
            False when already counted or the entry predates the migration
        """
        result = await self._entries_collection.update_one(
            {"userId": to_object_id(user_id), "date": date, "entryCounted": False},
            {"$set": {"entryCounted": True}},
        )
        return result.modified_count == 1


def format_entry_summary(entry: dict) -> dict:
    """List representation of an entry."""
    return {
        "_id": str(entry["_id"]),
        "title": entry.get("title"),
        "content": entry.get("entry"),
        "date": as_date_string(entry.get("date")),
        "mood": entry.get("mood", "neutral"),
        "createdAt": entry.get("createdAt"),
        "updatedAt": entry.get("updatedAt"),
    }


def format_entry(entry: dict, todos: Optional[List[dict]] = None) -> dict:
    """Full representation of an entry, with populated todos when given."""
    data = format_entry_summary(entry)
    data.update({
        "entry": entry.get("entry"),
        "images": [
            {"key": image.get("key"), "url": image.get("url")}
            for image in entry.get("images") or []
        ],
        "videos": entry.get("videos") or [],
        "links": entry.get("links") or [],
        "todoIds": [str(todo_id) for todo_id in entry.get("todoIds") or []],
        "userId": str(entry["userId"]) if entry.get("userId") else None,
    })
    if todos is not None:
        data["todos"] = todos
    return data
