"""
Request logging middleware.

Pure ASGI middleware (not BaseHTTPMiddleware) that logs one line per request:
method, path, status code, duration, client IP and user agent. Bodies are not
logged since they carry passwords and tokens.
"""

import logging
import time
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Logs every HTTP request once it has completed."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Initialize the logging middleware.

        Args:
            app: The ASGI application
            exclude_paths: Paths that are not logged (e.g. ["/health"])
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")

        headers = {
            k.decode("latin-1").lower(): v.decode("latin-1", errors="ignore")
            for k, v in scope.get("headers", [])
        }
        forwarded = headers.get("x-forwarded-for")
        client = scope.get("client")
        client_ip = forwarded.split(",")[0].strip() if forwarded else (client[0] if client else "-")
        user_agent = headers.get("user-agent", "-")

        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"{method} {path} failed after {duration_ms:.2f}ms - {str(e)}",
                exc_info=True,
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        logger.log(
            log_level,
            f"{method} {path} {status_code} {duration_ms:.2f}ms - {client_ip} \"{user_agent}\"",
        )
