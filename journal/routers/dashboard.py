"""
FastAPI router for the dashboard.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from journal.dependencies import get_stats_service, get_user_service, require_auth
from journal.services.dashboard import DashboardStatsService
from journal.services.user import UserService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
async def get_dashboard_stats(
    user_id: Annotated[str, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    stats_service: Annotated[DashboardStatsService, Depends(get_stats_service)],
):
    """Entry/todo totals, current streak, mood distribution and recent entries."""
    user = await user_service.require_user(user_id)
    settings = (user.get("profile") or {}).get("settings") or {}

    stats = await stats_service.get_stats(user_id, settings.get("timezone"))
    return success_response(stats)
