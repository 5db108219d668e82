from journal.services.dashboard.stats_service import DashboardStatsService, calculate_streak

__all__ = ["DashboardStatsService", "calculate_streak"]
