"""Password hashing and signed token primitives."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

DEFAULT_BCRYPT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("ascii"))
    except ValueError:
        # Malformed stored hash.
        return False


def hash_rounds(password_hash: str) -> int | None:
    """Return the bcrypt cost factor encoded in ``password_hash``."""
    parts = password_hash.split("$")
    if len(parts) < 4:
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


def needs_rehash(password_hash: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> bool:
    return hash_rounds(password_hash) != rounds


@lru_cache
def dummy_password_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash used to keep verification effort constant for unknown users."""
    return hash_password("filegate-dummy-password", rounds=rounds)


def encode_token(
    claims: dict[str, Any],
    *,
    secret_key: str,
    algorithm: str,
    expires_delta: timedelta,
) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_token(token: str, *, secret_key: str, algorithm: str) -> dict[str, Any]:
    """Decode and verify a signed token, raising ``ValueError`` when invalid."""
    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid token") from exc
