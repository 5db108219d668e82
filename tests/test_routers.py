"""HTTP-level tests for the journal routers using FastAPI's TestClient."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient

from common.utils.exceptions import BadRequestException
from journal.config import Settings
from journal.dependencies import (
    get_auth_middleware,
    get_jwt_auth,
    get_todo_service,
    get_token_authenticator,
    get_user_service,
)
from journal.middleware.auth import AuthMiddleware
from journal.routers import dashboard_router, diary_router, todos_router, users_router


def _set_cookie_headers(response):
    return response.headers.get_list("set-cookie")


@pytest.fixture
def user_service(sample_user_doc):
    service = MagicMock()
    service.create_user = AsyncMock(return_value=sample_user_doc)
    service.require_user = AsyncMock(return_value=sample_user_doc)
    return service


@pytest.fixture
def todo_service():
    return MagicMock()


@pytest.fixture
def client(jwt_auth, authenticator, user_service, todo_service):
    app = FastAPI()
    for router in (users_router, todos_router, diary_router, dashboard_router):
        app.include_router(router, prefix="/api")

    auth_middleware = AuthMiddleware(authenticator=authenticator, settings=Settings(JWT_SECRET="x"))
    app.dependency_overrides[get_jwt_auth] = lambda: jwt_auth
    app.dependency_overrides[get_token_authenticator] = lambda: authenticator
    app.dependency_overrides[get_auth_middleware] = lambda: auth_middleware
    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_todo_service] = lambda: todo_service
    return TestClient(app)


def test_register_sets_both_cookies(client, user_service):
    response = client.post("/api/users/register", json={
        "username": "alice",
        "email": "a@x.com",
        "password": "secret123",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert "passwordHash" not in body["data"]["user"]

    cookies = _set_cookie_headers(response)
    assert any(c.startswith("access_token=") and "Max-Age=900" in c for c in cookies)
    assert any(c.startswith("refresh_token=") and "Max-Age=604800" in c for c in cookies)
    assert all("HttpOnly" in c for c in cookies)

    password_hash = user_service.create_user.call_args.kwargs["password_hash"]
    assert password_hash != "secret123"


def test_register_rejects_short_password(client):
    response = client.post("/api/users/register", json={
        "username": "alice",
        "email": "a@x.com",
        "password": "123",
    })

    assert response.status_code == 422


def test_register_duplicate_email(client, user_service):
    user_service.create_user.side_effect = BadRequestException(
        message="User already exists", code="USER_ALREADY_EXISTS",
    )

    response = client.post("/api/users/register", json={
        "username": "alice",
        "email": "a@x.com",
        "password": "secret123",
    })

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "User already exists"


def test_me_without_cookies_is_unauthorized(client):
    response = client.get("/api/users/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_with_valid_tokens(client, authenticator, sample_user_id):
    tokens = await authenticator.issue_tokens(sample_user_id, "alice", "a@x.com")
    client.cookies.set("access_token", tokens.access_token)
    client.cookies.set("refresh_token", tokens.refresh_token)

    response = client.get("/api/users/me")

    assert response.status_code == 200
    assert response.json()["data"]["user"]["_id"] == sample_user_id
    assert _set_cookie_headers(response) == []


@pytest.mark.asyncio
async def test_refresh_only_request_gets_new_access_cookie(client, authenticator, sample_user_id):
    refresh_token = await authenticator.mint_refresh_token(sample_user_id, "alice", "a@x.com")
    client.cookies.set("refresh_token", refresh_token)

    response = client.get("/api/users/me")

    assert response.status_code == 200
    cookies = _set_cookie_headers(response)
    assert len(cookies) == 1
    assert cookies[0].startswith("access_token=")


def test_invalid_refresh_token_is_forbidden(client):
    client.cookies.set("refresh_token", "not-a-token")

    response = client.get("/api/users/me")

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == "Invalid refresh token"


@pytest.mark.asyncio
async def test_logout_clears_cookies(client, authenticator, sample_user_id):
    tokens = await authenticator.issue_tokens(sample_user_id, "alice", "a@x.com")
    client.cookies.set("access_token", tokens.access_token)
    client.cookies.set("refresh_token", tokens.refresh_token)

    response = client.get("/api/users/logout")

    assert response.status_code == 200
    cookies = _set_cookie_headers(response)
    assert any(c.startswith("access_token=") for c in cookies)
    assert any(c.startswith("refresh_token=") for c in cookies)


@pytest.mark.asyncio
async def test_token_endpoint_returns_new_access_token(client, authenticator, sample_user_id, decode_token):
    refresh_token = await authenticator.mint_refresh_token(sample_user_id, "alice", "a@x.com")
    client.cookies.set("refresh_token", refresh_token)

    response = client.get("/api/users/token")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["userId"] == sample_user_id
    assert decode_token(data["accessToken"])["type"] == "access"


@pytest.mark.asyncio
async def test_invalid_status_is_bad_request(client, authenticator, todo_service, sample_user_id):
    todo_service.set_status = AsyncMock(side_effect=BadRequestException(
        message="Invalid status value", code="INVALID_STATUS",
    ))
    tokens = await authenticator.issue_tokens(sample_user_id, "alice", "a@x.com")
    client.cookies.set("access_token", tokens.access_token)
    client.cookies.set("refresh_token", tokens.refresh_token)

    response = client.patch(f"/api/todos/{ObjectId()}/status/archived")

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_STATUS"


@pytest.mark.asyncio
async def test_create_todo_validates_task_length(client, authenticator, sample_user_id):
    tokens = await authenticator.issue_tokens(sample_user_id, "alice", "a@x.com")
    client.cookies.set("access_token", tokens.access_token)
    client.cookies.set("refresh_token", tokens.refresh_token)

    response = client.post("/api/todos", json={"task": "abc"})

    assert response.status_code == 422
