"""Authentication domain services."""

from .credentials import (
    check_user_password,
    delete_user,
    delete_user_row,
    get_user_by_email,
    register_user,
    update_password,
    verify_user_password,
)
from .reset_tokens import (
    RESET_TOKEN_TTL,
    IssuedResetToken,
    consume_reset_token,
    delete_reset_tokens_for_user,
    hash_reset_token,
    issue_reset_token,
    validate_reset_token,
)
from .sessions import SessionTokenIssuer

__all__ = [
    "register_user",
    "get_user_by_email",
    "check_user_password",
    "verify_user_password",
    "update_password",
    "delete_user",
    "delete_user_row",
    "RESET_TOKEN_TTL",
    "IssuedResetToken",
    "hash_reset_token",
    "issue_reset_token",
    "validate_reset_token",
    "consume_reset_token",
    "delete_reset_tokens_for_user",
    "SessionTokenIssuer",
]
