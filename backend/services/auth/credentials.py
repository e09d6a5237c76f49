"""Account credential persistence: registration, verification and password changes."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import (
    ConflictError,
    NotFoundError,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from core.security import DEFAULT_BCRYPT_ROUNDS
from db.errors import is_unique_violation
from models import User

EMAIL_CONFLICT_DETAIL = "User with that email already exists"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(_eq(User.email, email)).limit(1))
    return result.scalar_one_or_none()


async def register_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> User:
    """Create a user, relying on the unique email constraint for duplicates."""
    user = User(email=email, password_hash=hash_password(password, rounds=rounds))
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise ConflictError(EMAIL_CONFLICT_DETAIL) from exc
        raise
    return user


def check_user_password(
    user: User | None,
    password: str,
    *,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> bool:
    """Compare ``password`` with the user's hash, spending the same effort when absent."""
    if user is None:
        verify_password(password, dummy_password_hash(rounds))
        return False
    return verify_password(password, user.password_hash)


async def verify_user_password(
    session: AsyncSession,
    *,
    password: str,
    user_id: str | None = None,
    email: str | None = None,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> bool:
    if (user_id is None) == (email is None):
        raise ValueError("exactly one of user_id or email is required")
    if user_id is not None:
        user = await session.get(User, user_id)
    else:
        user = await get_user_by_email(session, cast(str, email))
    return check_user_password(user, password, rounds=rounds)


async def update_password(
    session: AsyncSession,
    user_id: str,
    new_password: str,
    *,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> None:
    """Replace the stored hash. Does not commit; the caller owns the unit."""
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    user.password_hash = hash_password(new_password, rounds=rounds)
    session.add(user)
    await session.flush()


async def delete_user_row(session: AsyncSession, user_id: str) -> bool:
    """Delete the user row without committing; True when a row was removed.

    Reset tokens referencing the user must already be gone.
    """
    result = await session.execute(delete(User).where(_eq(User.id, user_id)))
    return int(cast(Any, result).rowcount or 0) == 1


async def delete_user(session: AsyncSession, user_id: str) -> None:
    try:
        deleted = await delete_user_row(session, user_id)
    except Exception:
        await session.rollback()
        raise
    if not deleted:
        await session.rollback()
        raise NotFoundError("User not found")
    await session.commit()
