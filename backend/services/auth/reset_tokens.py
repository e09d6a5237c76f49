"""Password reset token ledger.

Tokens move from issued to consumed exactly once. Expiry is not a stored
state; it follows from ``expires_at``. Rows are kept after use for auditing,
and only the sha256 of a token is persisted.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, cast

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import InvalidOrExpiredTokenError, NotFoundError
from core.security import DEFAULT_BCRYPT_ROUNDS
from models import PasswordResetToken, User

from .credentials import update_password

RESET_TOKEN_TTL = timedelta(minutes=15)
RESET_TOKEN_BYTES = 32


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _gt(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column > value)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class IssuedResetToken:
    token: str
    user_id: str
    expires_at: datetime


async def issue_reset_token(
    session: AsyncSession,
    user_id: str,
    *,
    ttl: timedelta = RESET_TOKEN_TTL,
) -> IssuedResetToken:
    if await session.get(User, user_id) is None:
        raise NotFoundError("User not found")

    token = secrets.token_urlsafe(RESET_TOKEN_BYTES)
    expires_at = datetime.now(timezone.utc) + ttl
    session.add(
        PasswordResetToken(
            user_id=user_id,
            token_hash=hash_reset_token(token),
            expires_at=expires_at,
        )
    )
    try:
        await session.commit()
    except IntegrityError as exc:
        # The user was deleted between the lookup and the insert.
        await session.rollback()
        raise NotFoundError("User not found") from exc
    return IssuedResetToken(token=token, user_id=user_id, expires_at=expires_at)


def _usable_token_filter(token: str, now: datetime) -> tuple[ColumnElement[bool], ...]:
    used_column = cast(Any, PasswordResetToken.used)
    return (
        _eq(PasswordResetToken.token_hash, hash_reset_token(token)),
        cast(ColumnElement[bool], used_column.is_(False)),
        _gt(PasswordResetToken.expires_at, now),
    )


async def validate_reset_token(session: AsyncSession, token: str) -> str:
    """Return the owning user id, or raise without saying why the token failed."""
    now = datetime.now(timezone.utc)
    user_id_column = cast(ColumnElement[str], PasswordResetToken.user_id)
    result = await session.execute(
        select(user_id_column).where(*_usable_token_filter(token, now)).limit(1)
    )
    user_id = result.scalar_one_or_none()
    if user_id is None:
        raise InvalidOrExpiredTokenError()
    return user_id


async def consume_reset_token(
    session: AsyncSession,
    token: str,
    new_password: str,
    *,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> str:
    """Burn the token and change the password in one transaction.

    The conditional update is the serialization point: of several concurrent
    consumers only one sees a row flip from unused to used.
    """
    user_id = await validate_reset_token(session, token)
    now = datetime.now(timezone.utc)
    try:
        result = await session.execute(
            update(PasswordResetToken)
            .where(*_usable_token_filter(token, now))
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        if int(cast(Any, result).rowcount or 0) != 1:
            raise InvalidOrExpiredTokenError()
        await update_password(session, user_id, new_password, rounds=rounds)
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return user_id


async def delete_reset_tokens_for_user(session: AsyncSession, user_id: str) -> int:
    """Remove every token owned by ``user_id`` without committing."""
    result = await session.execute(
        delete(PasswordResetToken).where(_eq(PasswordResetToken.user_id, user_id))
    )
    return int(cast(Any, result).rowcount or 0)
