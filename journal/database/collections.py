"""
Journal collection names and indexes.

Services look collections up by these names on the database they are given;
the API entry point passes ``INDEXES`` to ``MongoDB.connect`` at startup.
"""

from pymongo import ASCENDING, DESCENDING, IndexModel


USERS = "users"
TODOS = "todos"
DIARY_ENTRIES = "diaryEntries"


INDEXES = {
    USERS: [
        IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
    ],
    TODOS: [
        IndexModel([("userId", ASCENDING), ("createdAt", DESCENDING)], name="user_created"),
        IndexModel([("userId", ASCENDING), ("priority", ASCENDING)], name="user_priority"),
    ],
    DIARY_ENTRIES: [
        IndexModel([("userId", ASCENDING), ("date", DESCENDING)], name="user_date"),
        # One migrated entry per user and day, even across concurrent job runs
        IndexModel(
            [("userId", ASCENDING), ("date", ASCENDING)],
            unique=True,
            partialFilterExpression={"entryCounted": {"$exists": True}},
            name="user_date_migrated_unique",
        ),
        IndexModel([("userId", ASCENDING), ("createdAt", DESCENDING)], name="user_created"),
    ],
}
