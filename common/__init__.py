"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection (Motor)
- auth: JWT signing and bcrypt password hashing
- utils: Standard responses, exceptions, timezone helpers
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import JWTAuth
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "JWTAuth",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    # Config
    "BaseAppSettings",
]
