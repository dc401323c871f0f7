"""
Security helpers for password hashing and bearer‑token authentication.

``CredentialHasher`` derives password hashes from the shared secret,
the password and a per‑user salt (SHA‑512, hex encoded) and generates
random salts and access tokens.  One instance is built from the
settings at startup and kept on ``app.state.hasher``.

Authentication is provided as FastAPI dependencies.  The
``Authorization`` header has the form ``<scheme> <token>``; the token
is an opaque value stored on the user record at login.  Resolving it
yields the user's id, which endpoints pass on explicitly as the owner
of whatever they create.  Only routes that declare one of these
dependencies look at the header; on those, an unknown token ends the
request with 401 before the endpoint runs.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from .config import Settings
from .db import get_connection


TOKEN_BYTES = 48


class CredentialHasher:
    """Password hashing bound to the process‑wide secret."""

    def __init__(self, secret: str) -> None:
        self._secret = secret

    def hash(self, password: str, salt: str) -> str:
        """Return ``sha512(secret + password + salt)`` as a hex string.

        Deterministic for a given secret, so hashes stay valid across
        restarts as long as ``SECRET_KEY`` does not change.
        """
        hash_this = f"{self._secret}{password}{salt}"
        return hashlib.sha512(hash_this.encode("utf-8")).hexdigest()

    def verify(self, password: str, salt: str, hashed_password: str) -> bool:
        """Check a password against a stored salt and hash."""
        candidate = self.hash(password, salt)
        return hmac.compare_digest(candidate, hashed_password)

    @staticmethod
    def generate_salt() -> str:
        return secrets.token_hex(TOKEN_BYTES)

    @staticmethod
    def generate_token() -> str:
        return secrets.token_hex(TOKEN_BYTES)


def get_settings(request: Request) -> Settings:
    """Dependency returning the settings the application was built with."""
    return request.app.state.settings


def get_hasher(request: Request) -> CredentialHasher:
    return request.app.state.hasher


authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid access token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_optional_owner(
    authorization: Optional[str] = Depends(authorization_header),
    settings: Settings = Depends(get_settings),
) -> Optional[int]:
    """Resolve the bearer token to a user id.

    Returns ``None`` for anonymous requests (no ``Authorization``
    header).  A header whose token does not belong to any user raises
    401, so the endpoint never runs with a half‑authenticated request.
    """
    if authorization is None:
        return None
    logger = logging.getLogger(__name__)
    parts = authorization.split(" ", 1)
    token = parts[1].strip() if len(parts) == 2 else ""
    if not token:
        logger.warning("Malformed Authorization header")
        raise _invalid_token()
    conn = get_connection(settings)
    try:
        row = conn.execute(
            "SELECT id FROM users WHERE access_token = ?", (token,)
        ).fetchone()
    finally:
        conn.close()
    if not row:
        logger.warning("Rejected unknown access token")
        raise _invalid_token()
    return row["id"]


def get_current_user(owner: Optional[int] = Depends(get_optional_owner)) -> int:
    """Dependency for routes that require an authenticated caller."""
    if owner is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return owner
