from journal.middleware.auth import AuthMiddleware, ACCESS_COOKIE, REFRESH_COOKIE
from journal.middleware.request_logger import RequestLoggingMiddleware

__all__ = ["AuthMiddleware", "ACCESS_COOKIE", "REFRESH_COOKIE", "RequestLoggingMiddleware"]
