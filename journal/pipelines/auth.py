"""
Auth pipeline functions.

Stateless orchestration for registration, login and token refresh.
"""

import logging
from typing import Optional

from common.auth import JWTAuth
from common.utils.exceptions import BadRequestException
from journal.services.auth import TokenAuthenticator
from journal.services.user import UserService, format_user

logger = logging.getLogger(__name__)


async def registration_pipeline(
    jwt_auth: JWTAuth,
    user_service: UserService,
    authenticator: TokenAuthenticator,
    username: str,
    email: str,
    password: str,
) -> dict:
    """
    Orchestrates the user registration flow.

    Args:
        jwt_auth: Password hasher
        user_service: For creating the user record
        authenticator: For minting the initial tokens
        username: Chosen user name
        email: Email address
        password: Plain-text password

    Returns:
        dict with user, accessToken and refreshToken

    Raises:
        BadRequestException: Email already registered
    """
    password_hash = jwt_auth.hash_password(password)
    user = await user_service.create_user(
        username=username,
        email=email,
        password_hash=password_hash,
    )

    tokens = await authenticator.issue_tokens(str(user["_id"]), user["username"], user["email"])
    logger.info(f"User registered: {user['_id']}")

    return {
        "user": format_user(user),
        "accessToken": tokens.access_token,
        "refreshToken": tokens.refresh_token,
    }


async def login_pipeline(
    jwt_auth: JWTAuth,
    user_service: UserService,
    authenticator: TokenAuthenticator,
    email: str,
    password: str,
) -> dict:
    """
    Orchestrates the login flow.

    Returns:
        dict with user, accessToken and refreshToken

    Raises:
        BadRequestException: Unknown email or wrong password (same message
            for both)
    """
    user = await user_service.get_user_by_email(email)
    if not user or not jwt_auth.verify_password(password, user.get("passwordHash", "")):
        logger.info("Login failed: invalid credentials")
        raise BadRequestException(
            message="Invalid email or password",
            code="INVALID_CREDENTIALS"
        )

    tokens = await authenticator.issue_tokens(str(user["_id"]), user.get("username"), user.get("email"))
    logger.info(f"User logged in: {user['_id']}")

    return {
        "user": format_user(user),
        "accessToken": tokens.access_token,
        "refreshToken": tokens.refresh_token,
    }


async def refresh_token_pipeline(
    authenticator: TokenAuthenticator,
    refresh_token: Optional[str],
) -> dict:
    """
    Mint a new access token from the refresh token.

    Raises:
        AuthRequiredException: No refresh token
        InvalidTokenException: Refresh token invalid or expired
    """
    access_token, claims = await authenticator.refresh_access_token(refresh_token)
    return {"accessToken": access_token, "userId": claims["sub"]}
