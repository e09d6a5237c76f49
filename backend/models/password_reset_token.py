"""Password reset token model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func, text
from sqlmodel import Field, SQLModel


class PasswordResetToken(SQLModel, table=True):
    """Single-use reset credential. Rows are kept after use or expiry."""

    __tablename__ = "password_reset_tokens"

    id: int | None = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    # No cascade: account deletion removes tokens explicitly before the user row.
    user_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id"),
            nullable=False,
            index=True,
        )
    )
    token_hash: str = Field(
        sa_column=Column(String(64), unique=True, nullable=False)
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    used: bool = Field(
        default=False,
        sa_column=Column(
            Boolean,
            nullable=False,
            server_default=text("false"),
        ),
    )
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
