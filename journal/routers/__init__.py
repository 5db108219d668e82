"""
Journal routers.
"""

from journal.routers.users import router as users_router
from journal.routers.todos import router as todos_router
from journal.routers.diary import router as diary_router
from journal.routers.dashboard import router as dashboard_router

__all__ = [
    "users_router",
    "todos_router",
    "diary_router",
    "dashboard_router",
]
