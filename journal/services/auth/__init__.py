"""
Auth services - token minting, verification and refresh.
"""

from journal.services.auth.token_authenticator import (
    TokenAuthenticator,
    TokenPair,
    AuthResult,
    AuthRequiredException,
    InvalidTokenException,
    MalformedClaimsException,
    ACCESS_TOKEN_TTL,
    REFRESH_TOKEN_TTL,
)

__all__ = [
    "TokenAuthenticator",
    "TokenPair",
    "AuthResult",
    "AuthRequiredException",
    "InvalidTokenException",
    "MalformedClaimsException",
    "ACCESS_TOKEN_TTL",
    "REFRESH_TOKEN_TTL",
]
