"""
User service for account and profile data.

Owns the ``users`` collection, including the per-user end-of-day guard
(``profile.diaryStats.lastEntryDate``).
"""

import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import BadRequestException, NotFoundException
from common.utils.timezones import DEFAULT_TIMEZONE
from journal.database import USERS

logger = logging.getLogger(__name__)


# Fields of the migrator's projection when scanning all users
SCAN_PROJECTION = {
    "email": 1,
    "profile.settings.timezone": 1,
    "profile.diaryStats.lastEntryDate": 1,
}

LAST_ENTRY_DATE = "profile.diaryStats.lastEntryDate"
TOTAL_ENTRIES = "profile.diaryStats.totalEntries"


def default_profile() -> Dict[str, Any]:
    """Profile sub-document for a new account."""
    return {
        "name": None,
        "bio": None,
        "dob": None,
        "settings": {
            "theme": "system",
            "notifications": True,
            "timezone": DEFAULT_TIMEZONE,
        },
        "diaryStats": {
            "totalEntries": 0,
            "lastEntryDate": None,
        },
    }


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse an id string, returning None when it isn't a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class UserService:
    """
    Manages user accounts and profile settings.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize UserService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._users_collection = db[USERS]

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
    ) -> dict:
        """
        Create a new user record.

        Args:
            username: Display/user name
            email: Email address (stored lower-cased, unique)
            password_hash: bcrypt hash of the password

        Returns:
            Created user document

        Raises:
            BadRequestException: Email already registered
        """
        email = email.strip().lower()

        existing = await self._users_collection.find_one({"email": email})
        if existing:
            raise BadRequestException(
                message="User already exists",
                code="USER_ALREADY_EXISTS"
            )

        now = datetime.now(timezone.utc)
        user_doc = {
            "username": username.strip(),
            "email": email,
            "passwordHash": password_hash,
            "profile": default_profile(),
            "profileCompleted": False,
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self._users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration for the same email
            raise BadRequestException(
                message="User already exists",
                code="USER_ALREADY_EXISTS"
            )
        user_doc["_id"] = result.inserted_id

        logger.info(f"User created: {result.inserted_id}")
        return user_doc

    async def get_user_by_id(self, user_id: str) -> Optional[dict]:
        """
        Load user by MongoDB ID.

        Returns:
            User document or None if not found / malformed id
        """
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self._users_collection.find_one({"_id": oid})

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        """Load user by email address."""
        return await self._users_collection.find_one({"email": email.strip().lower()})

    async def require_user(self, user_id: str) -> dict:
        """Load a user or raise 404."""
        user = await self.get_user_by_id(user_id)
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")
        return user

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> dict:
        """
        Apply a partial update to a user.

        Args:
            user_id: MongoDB user ID
            updates: Flat ``$set`` mapping; nested profile fields use dotted
                paths (e.g. ``profile.settings.timezone``)

        Returns:
            Updated user document

        Raises:
            NotFoundException: User does not exist
        """
        oid = to_object_id(user_id)
        if oid is None:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        updates = {**updates, "updatedAt": datetime.now(timezone.utc)}
        user = await self._users_collection.find_one_and_update(
            {"_id": oid},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        logger.info(f"User {user_id} updated fields: {sorted(updates)}")
        return user

    async def adjust_entry_count(self, user_id: str, delta: int) -> None:
        """Increment (or decrement) the user's diary entry counter."""
        await self._users_collection.update_one(
            {"_id": ObjectId(user_id)},
            {"$inc": {TOTAL_ENTRIES: delta}},
        )

    async def iter_users(self, batch_size: int = 500) -> AsyncIterator[dict]:
        """
        Stream every user with just the fields the end-of-day scan needs.

        Args:
            batch_size: Cursor batch size

        Yields:
            Partial user documents
        """
        cursor = self._users_collection.find({}, SCAN_PROJECTION).batch_size(batch_size)
        async for user in cursor:
            yield user

    async def set_last_entry_date(self, user_id, date_str: str) -> bool:
        """
        Advance the end-of-day guard, at most once per calendar date.

        A compare-and-swap: the write only matches while ``lastEntryDate`` is
        still different from ``date_str``, so concurrent cycles cannot both
        advance it.

        Args:
            user_id: MongoDB user ID
            date_str: Local calendar date the migration ran on (YYYY-MM-DD)

        Returns:
            True if this call advanced the guard, False if it was already set
        """
        result = await self._users_collection.update_one(
            {"_id": to_object_id(user_id), LAST_ENTRY_DATE: {"$ne": date_str}},
            {"$set": {LAST_ENTRY_DATE: date_str, "updatedAt": datetime.now(timezone.utc)}},
        )
        return result.modified_count == 1


def format_user(user: dict) -> dict:
    """Public representation of a user (never includes the password hash)."""
    profile = user.get("profile") or {}
    settings = profile.get("settings") or {}
    stats = profile.get("diaryStats") or {}
    return {
        "_id": str(user["_id"]),
        "username": user.get("username"),
        "email": user.get("email"),
        "profile": {
            "name": profile.get("name"),
            "bio": profile.get("bio"),
            "dob": profile.get("dob"),
            "settings": {
                "theme": settings.get("theme", "system"),
                "notifications": settings.get("notifications", True),
                "timezone": settings.get("timezone") or DEFAULT_TIMEZONE,
            },
            "diaryStats": {
                "totalEntries": stats.get("totalEntries", 0),
                "lastEntryDate": stats.get("lastEntryDate"),
            },
        },
        "profileCompleted": user.get("profileCompleted", False),
        "createdAt": user.get("createdAt"),
        "updatedAt": user.get("updatedAt"),
    }
