"""
JWT + bcrypt primitives.

Signs and verifies HS256 tokens with python-jose and hashes passwords with
bcrypt. The signing secret comes from a key-material provider: either a plain
string or a zero-argument callable, so the key can be rotated or fixed in tests
without touching module state.

Example:
    auth = JWTAuth(secret=lambda: settings.JWT_SECRET)

    token = await auth.create_token(
        "665f1c...", expires_in=timedelta(minutes=15), token_type="access",
        username="alice", email="a@x.com",
    )
    claims = await auth.verify_token(token, token_type="access")
    print(claims["sub"])
"""

import base64
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Union

import bcrypt as bcrypt_lib
from jose import jwt, JWTError


SecretProvider = Union[str, Callable[[], str]]


class JWTAuth:
    """
    Token signing/verification and password hashing.

    Holds no per-request state; every verification is a pure function of
    the token, the current secret and the current time.
    """

    def __init__(self, secret: SecretProvider, algorithm: str = "HS256"):
        """
        Initialize JWT auth.

        Args:
            secret: Signing key, or a callable returning it
            algorithm: JWT algorithm (default: HS256)
        """
        self._secret_provider = secret
        self.algorithm = algorithm

    @property
    def secret(self) -> str:
        secret = self._secret_provider() if callable(self._secret_provider) else self._secret_provider
        if not secret:
            raise RuntimeError("JWT secret is not configured")
        return secret

    # ─────────────────────────────────────────────────────────────
    # Passwords
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _prehash_password(password: str) -> str:
        """SHA-256 pre-hash so bcrypt's 72-byte limit never truncates input."""
        digest = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(digest).decode("utf-8")

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt with SHA-256 pre-hashing."""
        prehashed = self._prehash_password(password)
        return bcrypt_lib.hashpw(prehashed.encode("utf-8"), bcrypt_lib.gensalt()).decode("utf-8")

    def verify_password(self, password: str, hashed: str) -> bool:
        """Check a password against a stored bcrypt hash."""
        if not hashed:
            return False
        try:
            return bcrypt_lib.checkpw(
                self._prehash_password(password).encode("utf-8"),
                hashed.encode("utf-8"),
            )
        except ValueError:
            # Malformed hash in storage
            return False

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    async def create_token(
        self,
        subject: str,
        expires_in: timedelta,
        token_type: str,
        issued_at: Optional[datetime] = None,
        **claims: Any,
    ) -> str:
        """
        Sign a token for a subject.

        Args:
            subject: User ID placed in the ``sub`` claim
            expires_in: Lifetime measured from ``issued_at``
            token_type: "access" or "refresh"
            issued_at: Issue time (defaults to now, UTC)
            **claims: Extra claims (username, email)

        Returns:
            Encoded JWT string
        """
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = {
            **claims,
            "sub": subject,
            "type": token_type,
            "iat": issued_at,
            "exp": issued_at + expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    async def verify_token(
        self,
        token: str,
        token_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Verify signature and expiry and return the claims.

        Args:
            token: Encoded JWT
            token_type: When given, the ``type`` claim must match

        Raises:
            ValueError: Bad signature, expired, malformed or wrong type
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")

        if token_type and payload.get("type") != token_type:
            raise ValueError(f"Invalid token: expected a {token_type} token")

        return payload
