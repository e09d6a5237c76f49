"""SQLModel models package."""

from .file_record import FileRecord
from .password_reset_token import PasswordResetToken
from .user import User
from .whitelist_email import WhitelistEmail

__all__ = [
    "User",
    "PasswordResetToken",
    "WhitelistEmail",
    "FileRecord",
]
