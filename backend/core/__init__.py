"""Core configuration, security and error primitives."""

from .config import Settings, get_settings, settings
from .errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    GatewayError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    PayloadTooLargeError,
    UnauthorizedError,
)
from .security import (
    decode_token,
    dummy_password_hash,
    encode_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "GatewayError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "BadRequestError",
    "InvalidOrExpiredTokenError",
    "PayloadTooLargeError",
    "hash_password",
    "verify_password",
    "needs_rehash",
    "dummy_password_hash",
    "encode_token",
    "decode_token",
]
