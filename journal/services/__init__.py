"""
Journal services.

All service classes organized by feature.
"""

# Auth services
from journal.services.auth.token_authenticator import TokenAuthenticator

# Data services
from journal.services.user.user_service import UserService
from journal.services.todo.todo_service import TodoService
from journal.services.diary.diary_service import DiaryService
from journal.services.dashboard.stats_service import DashboardStatsService

# Batch services
from journal.services.eod.eod_migrator import EndOfDayMigrator

__all__ = [
    "TokenAuthenticator",
    "UserService",
    "TodoService",
    "DiaryService",
    "DashboardStatsService",
    "EndOfDayMigrator",
]
