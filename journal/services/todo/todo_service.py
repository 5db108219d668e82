"""
Todo service.

CRUD over the ``todos`` collection, scoped to the owning user, plus the
creation-window query used by the end-of-day migration.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.exceptions import BadRequestException, NotFoundException
from journal.database import TODOS
from journal.services.user.user_service import to_object_id

logger = logging.getLogger(__name__)

VALID_STATUSES = ("todo", "in-progress", "done")
VALID_PRIORITIES = ("low", "medium", "high")

# Todos due sooner than this are escalated to high priority
ESCALATION_WINDOW = timedelta(hours=48)

# Fields an update may clear with null
NULLABLE_FIELDS = ("description", "dueDate")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def escalate_priority(todo: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Raise priority to ``high`` when the due date is less than 48 hours away.

    Overdue todos count as due soon. Priority is never lowered here.

    Args:
        todo: Todo fields (mutated in place)
        now: Current time, defaults to UTC now

    Returns:
        The same dict
    """
    due_date = todo.get("dueDate")
    if not isinstance(due_date, datetime):
        return todo

    now = now or datetime.now(timezone.utc)
    if _as_utc(due_date) - now < ESCALATION_WINDOW:
        todo["priority"] = "high"
    return todo


class TodoService:
    """
    Manages a user's todo list.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db
        self._todos_collection = db[TODOS]

    async def create_todo(self, user_id: str, data: Dict[str, Any]) -> dict:
        """
        Create a todo for the user.

        Args:
            user_id: Owner's MongoDB ID
            data: task, description, dueDate, status, priority

        Returns:
            Created todo document
        """
        now = datetime.now(timezone.utc)
        todo_doc = {
            "task": data["task"],
            "description": data.get("description"),
            "dueDate": data.get("dueDate"),
            "status": data.get("status") or "todo",
            "priority": data.get("priority") or "medium",
            "userId": ObjectId(user_id),
            "createdAt": now,
            "updatedAt": now,
        }
        escalate_priority(todo_doc, now)

        result = await self._todos_collection.insert_one(todo_doc)
        todo_doc["_id"] = result.inserted_id

        logger.info(f"Todo {result.inserted_id} created for user {user_id}")
        return todo_doc

    async def list_todos(self, user_id: str) -> List[dict]:
        """All of the user's todos, newest first."""
        cursor = self._todos_collection.find(
            {"userId": ObjectId(user_id)}
        ).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def list_by_priority(self, user_id: str, priority: str) -> List[dict]:
        """
        The user's todos with the given priority, newest first.

        Raises:
            BadRequestException: Unknown priority
        """
        if priority not in VALID_PRIORITIES:
            raise BadRequestException(
                message="Invalid priority value",
                code="INVALID_PRIORITY",
                details={"allowed": list(VALID_PRIORITIES)}
            )

        cursor = self._todos_collection.find(
            {"userId": ObjectId(user_id), "priority": priority}
        ).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def get_todo(self, user_id: str, todo_id: str) -> dict:
        """
        Load one of the user's todos.

        Raises:
            NotFoundException: Missing, malformed id, or owned by someone else
        """
        oid = to_object_id(todo_id)
        todo = None
        if oid is not None:
            todo = await self._todos_collection.find_one(
                {"_id": oid, "userId": ObjectId(user_id)}
            )
        if not todo:
            raise NotFoundException(message="Todo not found", code="TODO_NOT_FOUND")
        return todo

    async def update_todo(self, user_id: str, todo_id: str, updates: Dict[str, Any]) -> dict:
        """
        Partially update a todo, re-applying priority escalation when the
        due date or priority changes.

        Returns:
            Updated todo document
        """
        existing = await self.get_todo(user_id, todo_id)

        updates = {
            key: value for key, value in updates.items()
            if value is not None or key in NULLABLE_FIELDS
        }
        if "dueDate" in updates or "priority" in updates:
            merged = {
                "dueDate": updates.get("dueDate", existing.get("dueDate")),
                "priority": updates.get("priority", existing.get("priority")) or "medium",
            }
            escalate_priority(merged)
            updates["priority"] = merged["priority"]

        updates["updatedAt"] = datetime.now(timezone.utc)

        todo = await self._todos_collection.find_one_and_update(
            {"_id": existing["_id"], "userId": ObjectId(user_id)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not todo:
            raise NotFoundException(message="Todo not found", code="TODO_NOT_FOUND")
        return todo

    async def set_status(self, user_id: str, todo_id: str, status: str) -> dict:
        """
        Change a todo's status.

        Raises:
            BadRequestException: Unknown status
            NotFoundException: Todo not found
        """
        if status not in VALID_STATUSES:
            raise BadRequestException(
                message="Invalid status value",
                code="INVALID_STATUS",
                details={"allowed": list(VALID_STATUSES)}
            )

        oid = to_object_id(todo_id)
        todo = None
        if oid is not None:
            todo = await self._todos_collection.find_one_and_update(
                {"_id": oid, "userId": ObjectId(user_id)},
                {"$set": {"status": status, "updatedAt": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        if not todo:
            raise NotFoundException(message="Todo not found", code="TODO_NOT_FOUND")
        return todo

    async def delete_todo(self, user_id: str, todo_id: str) -> dict:
        """Delete a todo, returning the removed document."""
        oid = to_object_id(todo_id)
        todo = None
        if oid is not None:
            todo = await self._todos_collection.find_one_and_delete(
                {"_id": oid, "userId": ObjectId(user_id)}
            )
        if not todo:
            raise NotFoundException(message="Todo not found", code="TODO_NOT_FOUND")

        logger.info(f"Todo {todo_id} deleted for user {user_id}")
        return todo

    async def find_created_in_range(
        self,
        user_id,
        start: datetime,
        end: datetime,
    ) -> List[dict]:
        """
        Todos created in the half-open interval ``[start, end)``.

        Sorted oldest first so callers get a stable creation order.
        """
        cursor = self._todos_collection.find(
            {
                "userId": to_object_id(user_id),
                "createdAt": {"$gte": start, "$lt": end},
            },
            {"_id": 1, "createdAt": 1},
        ).sort("createdAt", 1)
        return await cursor.to_list(length=None)

    async def get_todos_by_ids(self, user_id: str, todo_ids: List[ObjectId]) -> List[dict]:
        """Load the user's todos for the given ids, in the order given."""
        if not todo_ids:
            return []
        cursor = self._todos_collection.find(
            {"_id": {"$in": list(todo_ids)}, "userId": ObjectId(user_id)}
        )
        found = {todo["_id"]: todo for todo in await cursor.to_list(length=None)}
        return [found[todo_id] for todo_id in todo_ids if todo_id in found]

    async def count_todos(self, user_id: str, status: Optional[str] = None) -> int:
        """Number of the user's todos, optionally filtered by status."""
        query: Dict[str, Any] = {"userId": ObjectId(user_id)}
        if status:
            query["status"] = status
        return await self._todos_collection.count_documents(query)


def format_todo(todo: dict) -> dict:
    """API representation of a todo."""
    return {
        "_id": str(todo["_id"]),
        "task": todo.get("task"),
        "description": todo.get("description"),
        "dueDate": todo.get("dueDate"),
        "status": todo.get("status", "todo"),
        "priority": todo.get("priority", "medium"),
        "userId": str(todo["userId"]) if todo.get("userId") else None,
        "createdAt": todo.get("createdAt"),
        "updatedAt": todo.get("updatedAt"),
    }
