"""
Authentication for protected routes.

Reads the access/refresh token cookies, authenticates them and attaches the
user id to the request. When the access token had to be refreshed, the new
one is set back on the response as the ``access_token`` cookie.
"""

import logging
from typing import Optional

from fastapi import Request, Response

from journal.config import Settings
from journal.services.auth import (
    ACCESS_TOKEN_TTL,
    REFRESH_TOKEN_TTL,
    AuthResult,
    TokenAuthenticator,
)

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


class AuthMiddleware:
    """
    Validates tokens and attaches the user id to the request.
    """

    def __init__(self, authenticator: TokenAuthenticator, settings: Settings):
        """
        Initialize AuthMiddleware.

        Args:
            authenticator: Token verification/refresh
            settings: Cookie flags
        """
        self._authenticator = authenticator
        self._settings = settings

    async def require_auth(self, request: Request, response: Response) -> str:
        """
        Validate request is authenticated.

        Args:
            request: HTTP request object
            response: Response the refreshed cookie is written to

        Returns:
            Authenticated user id

        Raises:
            AuthRequiredException: No refresh token
            InvalidTokenException: Refresh token invalid or expired
            MalformedClaimsException: Token has no subject

        Side Effects:
            - Sets a new access_token cookie when the access token was refreshed
            - Attaches request.state.user_id and request.state.claims
        """
        access_token = self._extract_access_token(request)
        refresh_token = request.cookies.get(REFRESH_COOKIE)

        result: AuthResult = await self._authenticator.authenticate(access_token, refresh_token)

        if result.refreshed_access_token:
            logger.debug(f"Access token refreshed for user {result.subject_id}")
            self.set_access_cookie(response, result.refreshed_access_token)

        request.state.user_id = result.subject_id
        request.state.claims = result.claims
        return result.subject_id

    def set_access_cookie(self, response: Response, token: str) -> None:
        self._set_cookie(response, ACCESS_COOKIE, token, int(ACCESS_TOKEN_TTL.total_seconds()))

    def set_auth_cookies(self, response: Response, access_token: str, refresh_token: str) -> None:
        """Set both token cookies after login or registration."""
        self.set_access_cookie(response, access_token)
        self._set_cookie(response, REFRESH_COOKIE, refresh_token, int(REFRESH_TOKEN_TTL.total_seconds()))

    def clear_auth_cookies(self, response: Response) -> None:
        """Remove both token cookies (logout)."""
        for name in (ACCESS_COOKIE, REFRESH_COOKIE):
            response.delete_cookie(
                name,
                httponly=True,
                secure=self._settings.COOKIE_SECURE,
                samesite=self._settings.COOKIE_SAMESITE,
            )

    def _set_cookie(self, response: Response, name: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key=name,
            value=value,
            max_age=max_age,
            httponly=True,
            secure=self._settings.COOKIE_SECURE,
            samesite=self._settings.COOKIE_SAMESITE,
        )

    def _extract_access_token(self, request: Request) -> Optional[str]:
        """
        Access token from its cookie, else from a bearer Authorization header.
        """
        token = request.cookies.get(ACCESS_COOKIE)
        if token:
            return token

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None
        return parts[1]
