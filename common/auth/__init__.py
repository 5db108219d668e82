"""
Authentication module - JWT signing and password hashing.
"""

from common.auth.jwt_auth import JWTAuth, SecretProvider

__all__ = ["JWTAuth", "SecretProvider"]
