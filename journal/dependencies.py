"""
FastAPI dependencies for the journal application.

Provides dependency injection for all services.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth
from journal.config import Settings
from journal.middleware.auth import AuthMiddleware
from journal.services.auth import TokenAuthenticator
from journal.services.dashboard import DashboardStatsService
from journal.services.diary import DiaryService
from journal.services.eod import EndOfDayMigrator
from journal.services.todo import TodoService
from journal.services.user import UserService


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

# Auth
_jwt_auth: Optional[JWTAuth] = None
_token_authenticator: Optional[TokenAuthenticator] = None
_auth_middleware: Optional[AuthMiddleware] = None

# Journal data
_user_service: Optional[UserService] = None
_todo_service: Optional[TodoService] = None
_diary_service: Optional[DiaryService] = None
_stats_service: Optional[DashboardStatsService] = None

# End-of-day migration
_eod_migrator: Optional[EndOfDayMigrator] = None


# ─────────────────────────────────────────────────────────────────
# Initialization functions
# ─────────────────────────────────────────────────────────────────

def init_auth_services(settings: Settings) -> None:
    """Initialize auth services."""
    global _jwt_auth, _token_authenticator, _auth_middleware

    # Secret is read from settings at sign/verify time
    _jwt_auth = JWTAuth(secret=lambda: settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    _token_authenticator = TokenAuthenticator(jwt_auth=_jwt_auth)
    _auth_middleware = AuthMiddleware(authenticator=_token_authenticator, settings=settings)


def init_journal_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize user, todo, diary and dashboard services."""
    global _user_service, _todo_service, _diary_service, _stats_service

    _user_service = UserService(db=db)
    _todo_service = TodoService(db=db)
    _diary_service = DiaryService(db=db)
    _stats_service = DashboardStatsService(
        diary_service=_diary_service,
        todo_service=_todo_service,
    )


def init_eod_services(settings: Settings) -> None:
    """Initialize the end-of-day migrator (requires journal services)."""
    global _eod_migrator

    _eod_migrator = EndOfDayMigrator(
        user_service=_user_service,
        todo_service=_todo_service,
        diary_service=_diary_service,
        batch_size=settings.EOD_BATCH_SIZE,
    )


def init_all_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """
    Initialize all services at application startup.

    Args:
        db: Main MongoDB database connection
        settings: Application settings
    """
    init_auth_services(settings)
    init_journal_services(db)
    init_eod_services(settings)


# ─────────────────────────────────────────────────────────────────
# Auth getters
# ─────────────────────────────────────────────────────────────────

def get_jwt_auth() -> JWTAuth:
    """Get JWT signer / password hasher."""
    if _jwt_auth is None:
        raise RuntimeError("Auth services not initialized. Call init_all_services() first.")
    return _jwt_auth


def get_token_authenticator() -> TokenAuthenticator:
    """Get token authenticator instance."""
    if _token_authenticator is None:
        raise RuntimeError("Auth services not initialized. Call init_all_services() first.")
    return _token_authenticator


def get_auth_middleware() -> AuthMiddleware:
    """Get auth middleware instance."""
    if _auth_middleware is None:
        raise RuntimeError("Auth services not initialized. Call init_all_services() first.")
    return _auth_middleware


async def require_auth(
    request: Request,
    response: Response,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)]
) -> str:
    """Dependency that requires authentication. Returns the user id."""
    return await auth_middleware.require_auth(request, response)


# ─────────────────────────────────────────────────────────────────
# Service getters
# ─────────────────────────────────────────────────────────────────

def get_user_service() -> UserService:
    """Get user service instance."""
    if _user_service is None:
        raise RuntimeError("Journal services not initialized.")
    return _user_service


def get_todo_service() -> TodoService:
    """Get todo service instance."""
    if _todo_service is None:
        raise RuntimeError("Journal services not initialized.")
    return _todo_service


def get_diary_service() -> DiaryService:
    """Get diary service instance."""
    if _diary_service is None:
        raise RuntimeError("Journal services not initialized.")
    return _diary_service


def get_stats_service() -> DashboardStatsService:
    """Get dashboard stats service instance."""
    if _stats_service is None:
        raise RuntimeError("Journal services not initialized.")
    return _stats_service


def get_eod_migrator() -> EndOfDayMigrator:
    """Get end-of-day migrator instance."""
    if _eod_migrator is None:
        raise RuntimeError("End-of-day services not initialized.")
    return _eod_migrator
