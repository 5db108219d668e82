"""Shared test fixtures for journal backend tests."""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from jose import jwt

from common.auth import JWTAuth
from journal.services.auth import TokenAuthenticator

TEST_SECRET = "test-secret-key"


@pytest.fixture
def sample_user_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() and aggregate() return cursors synchronously (not
    # coroutines), so use MagicMock for them. Async methods like find_one,
    # insert_one, update_one etc. stay as AsyncMock.
    collection.find = MagicMock()
    collection.aggregate = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


def _make_cursor(docs):
    cursor = MagicMock()
    cursor.sort = MagicMock(return_value=cursor)
    cursor.limit = MagicMock(return_value=cursor)
    cursor.batch_size = MagicMock(return_value=cursor)
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


@pytest.fixture
def make_cursor():
    """Factory for chainable fake Motor cursors returning ``docs`` from to_list()."""
    return _make_cursor


@pytest.fixture
def jwt_secret():
    return TEST_SECRET


@pytest.fixture
def jwt_auth(jwt_secret):
    return JWTAuth(secret=jwt_secret)


@pytest.fixture
def decode_token(jwt_secret):
    """Decode a token signed with the test secret."""
    return lambda token: jwt.decode(token, jwt_secret, algorithms=["HS256"])


@pytest.fixture
def authenticator(jwt_auth):
    return TokenAuthenticator(jwt_auth=jwt_auth)


@pytest.fixture
def sample_user_doc(sample_user_id):
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(sample_user_id),
        "username": "alice",
        "email": "a@x.com",
        "passwordHash": "hash",
        "profile": {
            "name": "Alice",
            "bio": None,
            "dob": None,
            "settings": {"theme": "system", "notifications": True, "timezone": "Asia/Kolkata"},
            "diaryStats": {"totalEntries": 2, "lastEntryDate": "2025-03-10"},
        },
        "profileCompleted": False,
        "createdAt": now,
        "updatedAt": now,
    }
