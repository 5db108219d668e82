"""
Access/refresh token lifecycle.

Every protected request carries up to two tokens: a short-lived access token
and a long-lived refresh token. The authenticator accepts a valid access token
directly; when it is missing or no longer valid it falls back to the refresh
token and mints a replacement access token for the caller to hand back to the
client.

There is no server-side revocation list. Logging out only clears the client's
cookies, so a leaked refresh token stays usable until it expires.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from common.auth import JWTAuth
from common.utils.exceptions import UnauthorizedException, ForbiddenException

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)

ACCESS = "access"
REFRESH = "refresh"


# ─────────────────────────────────────────────────────────────────
# Rejections
# ─────────────────────────────────────────────────────────────────

class AuthRequiredException(UnauthorizedException):
    """No refresh token was presented."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, code="AUTH_REQUIRED")


class InvalidTokenException(ForbiddenException):
    """Refresh token failed signature or expiry checks."""

    def __init__(self, message: str = "Invalid refresh token"):
        super().__init__(message=message, code="INVALID_TOKEN")


class MalformedClaimsException(ForbiddenException):
    """Token verified but carries no subject."""

    def __init__(self, message: str = "Invalid token payload: missing user id"):
        super().__init__(message=message, code="MALFORMED_CLAIMS")


# ─────────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────────

@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class AuthResult:
    """Outcome of a successful authentication."""
    subject_id: str
    claims: Dict[str, Any]
    # Set only when the access token was missing/invalid and a new one was minted
    refreshed_access_token: Optional[str] = None


class TokenAuthenticator:
    """
    Validates and refreshes credential tokens.
    """

    def __init__(self, jwt_auth: JWTAuth):
        """
        Initialize TokenAuthenticator.

        Args:
            jwt_auth: Signer/verifier holding the injected secret
        """
        self._jwt = jwt_auth

    async def mint_access_token(
        self,
        user_id: str,
        username: Optional[str],
        email: Optional[str],
        issued_at: Optional[datetime] = None,
    ) -> str:
        """Sign a 15-minute access token."""
        return await self._jwt.create_token(
            user_id,
            expires_in=ACCESS_TOKEN_TTL,
            token_type=ACCESS,
            issued_at=issued_at,
            username=username,
            email=email,
        )

    async def mint_refresh_token(
        self,
        user_id: str,
        username: Optional[str],
        email: Optional[str],
        issued_at: Optional[datetime] = None,
    ) -> str:
        """Sign a 7-day refresh token."""
        return await self._jwt.create_token(
            user_id,
            expires_in=REFRESH_TOKEN_TTL,
            token_type=REFRESH,
            issued_at=issued_at,
            username=username,
            email=email,
        )

    async def issue_tokens(
        self,
        user_id: str,
        username: Optional[str],
        email: Optional[str],
    ) -> TokenPair:
        """Mint both tokens at login/registration."""
        return TokenPair(
            access_token=await self.mint_access_token(user_id, username, email),
            refresh_token=await self.mint_refresh_token(user_id, username, email),
        )

    async def authenticate(
        self,
        access_token: Optional[str],
        refresh_token: Optional[str],
    ) -> AuthResult:
        """
        Authenticate a request from its tokens.

        Args:
            access_token: Short-lived token, may be missing
            refresh_token: Long-lived token, required

        Returns:
            AuthResult with the subject id, plus a freshly minted access
            token when the refresh path was taken

        Raises:
            AuthRequiredException: No refresh token, whatever the access token
            MalformedClaimsException: A verified token has no subject
            InvalidTokenException: Refresh token invalid or expired
        """
        if not refresh_token:
            raise AuthRequiredException()

        if access_token:
            try:
                claims = await self._jwt.verify_token(access_token, token_type=ACCESS)
            except ValueError as e:
                logger.debug(f"Access token rejected, trying refresh token: {e}")
            else:
                return AuthResult(subject_id=self._subject(claims), claims=claims)

        new_access_token, claims = await self.refresh_access_token(refresh_token)
        return AuthResult(
            subject_id=claims["sub"],
            claims=claims,
            refreshed_access_token=new_access_token,
        )

    async def refresh_access_token(
        self,
        refresh_token: Optional[str],
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Mint a new access token from a refresh token.

        Args:
            refresh_token: Long-lived token

        Returns:
            tuple of (new_access_token, refresh_claims)

        Raises:
            AuthRequiredException: No refresh token
            InvalidTokenException: Refresh token invalid or expired
            MalformedClaimsException: Refresh token has no subject
        """
        if not refresh_token:
            raise AuthRequiredException()

        try:
            claims = await self._jwt.verify_token(refresh_token, token_type=REFRESH)
        except ValueError as e:
            logger.info(f"Refresh token rejected: {e}")
            raise InvalidTokenException()

        subject_id = self._subject(claims)
        new_access_token = await self.mint_access_token(
            subject_id,
            claims.get("username"),
            claims.get("email"),
        )

        logger.debug(f"Minted access token for user {subject_id} from refresh token")
        return new_access_token, claims

    @staticmethod
    def _subject(claims: Dict[str, Any]) -> str:
        subject_id = claims.get("sub")
        if not subject_id:
            raise MalformedClaimsException()
        return str(subject_id)
