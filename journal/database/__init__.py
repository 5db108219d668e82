"""
Journal-specific database definitions.
"""

from journal.database.collections import USERS, TODOS, DIARY_ENTRIES, INDEXES

__all__ = ["USERS", "TODOS", "DIARY_ENTRIES", "INDEXES"]
