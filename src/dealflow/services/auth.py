# src/dealflow/services/auth.py
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from dealflow.adapters.config import config

_SCHEME = "pbkdf2_sha256"
_ITERATIONS = 260_000


class AuthError(Exception):
    pass


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def hash_password(password: str, *, iterations: int = _ITERATIONS) -> str:
    """
    Salted PBKDF2-HMAC-SHA256.
    Stored as: pbkdf2_sha256$<iterations>$<salt_b64>$<hash_b64>
    """
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_SCHEME}${iterations}${_b64(salt)}${_b64(digest)}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, iterations, salt_b64, hash_b64 = password_hash.split("$")
        if scheme != _SCHEME:
            return False
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(hash_b64)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iterations))
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(digest, expected)


def create_access_token(
    *,
    user_id: int,
    username: str,
    expires_minutes: int | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    ttl = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {
        "sub": str(user_id),
        "username": username,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature + expiry. Returns the claims with `user_id` as int."""
    try:
        claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid token") from e

    try:
        claims["user_id"] = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise AuthError("Invalid token payload") from e
    return claims
