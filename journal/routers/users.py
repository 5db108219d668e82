"""
FastAPI router for user and auth endpoints.

Registration, login, logout, token refresh and the current user's profile.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from common.auth import JWTAuth
from common.utils import success_response
from journal.dependencies import (
    get_auth_middleware,
    get_jwt_auth,
    get_token_authenticator,
    get_user_service,
    require_auth,
)
from journal.middleware.auth import AuthMiddleware, REFRESH_COOKIE
from journal.pipelines import auth as auth_pipelines
from journal.pipelines import user as user_pipelines
from journal.schemas.user import (
    LoginRequest,
    RegisterRequest,
    UpdateMeRequest,
    UpdateProfileRequest,
)
from journal.services.auth import TokenAuthenticator
from journal.services.user import UserService, format_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    response: Response,
    jwt_auth: Annotated[JWTAuth, Depends(get_jwt_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    authenticator: Annotated[TokenAuthenticator, Depends(get_token_authenticator)],
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)],
):
    """
    Register a new user account.

    Sets the access and refresh token cookies.
    """
    result = await auth_pipelines.registration_pipeline(
        jwt_auth=jwt_auth,
        user_service=user_service,
        authenticator=authenticator,
        username=body.username,
        email=body.email,
        password=body.password,
    )
    auth_middleware.set_auth_cookies(response, result["accessToken"], result["refreshToken"])
    return success_response(result, message="User registered successfully")


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    jwt_auth: Annotated[JWTAuth, Depends(get_jwt_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    authenticator: Annotated[TokenAuthenticator, Depends(get_token_authenticator)],
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)],
):
    """Log in with email and password."""
    result = await auth_pipelines.login_pipeline(
        jwt_auth=jwt_auth,
        user_service=user_service,
        authenticator=authenticator,
        email=body.email,
        password=body.password,
    )
    auth_middleware.set_auth_cookies(response, result["accessToken"], result["refreshToken"])
    return success_response(result, message="Login successful")


@router.get("/logout")
async def logout(
    response: Response,
    user_id: Annotated[str, Depends(require_auth)],
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)],
):
    """
    Log out by clearing the token cookies.

    Tokens are not revoked server-side.
    """
    auth_middleware.clear_auth_cookies(response)
    logger.info(f"User logged out: {user_id}")
    return success_response(message="Logged out successfully")


@router.get("/token")
async def refresh_token(
    request: Request,
    response: Response,
    authenticator: Annotated[TokenAuthenticator, Depends(get_token_authenticator)],
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)],
):
    """Mint a new access token from the refresh token cookie."""
    result = await auth_pipelines.refresh_token_pipeline(
        authenticator=authenticator,
        refresh_token=request.cookies.get(REFRESH_COOKIE),
    )
    auth_middleware.set_access_cookie(response, result["accessToken"])
    return success_response(result)


@router.get("/me")
async def get_me(
    user_id: Annotated[str, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Get the current user."""
    user = await user_service.require_user(user_id)
    return success_response({"user": format_user(user)})


@router.put("/me")
async def update_me(
    body: UpdateMeRequest,
    user_id: Annotated[str, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Update username and/or profile. Only provided fields change."""
    user = await user_pipelines.update_me_pipeline(
        user_service,
        user_id,
        body.model_dump(exclude_unset=True),
    )
    return success_response({"user": user})


@router.patch("/update-profile")
async def update_profile(
    body: UpdateProfileRequest,
    user_id: Annotated[str, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Update profile fields and settings, marking the profile complete."""
    user = await user_pipelines.update_profile_pipeline(
        user_service,
        user_id,
        body.model_dump(exclude_unset=True),
    )
    return success_response({"user": user}, message="Profile updated successfully")
