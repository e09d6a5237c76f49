"""Login whitelist gate."""

from __future__ import annotations

import re
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import BadRequestError, ConflictError, NotFoundError
from db.errors import is_unique_violation
from models import WhitelistEmail

EMAIL_SHAPE_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


def is_valid_email_shape(email: str) -> bool:
    return EMAIL_SHAPE_PATTERN.fullmatch(email) is not None


async def is_whitelisted(session: AsyncSession, email: str) -> bool:
    email_column = cast(ColumnElement[str], WhitelistEmail.email)
    result = await session.execute(
        select(email_column).where(_eq(WhitelistEmail.email, email)).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def add_whitelist_email(session: AsyncSession, email: str) -> WhitelistEmail:
    if not is_valid_email_shape(email):
        raise BadRequestError("Invalid email format")

    entry = WhitelistEmail(email=email)
    session.add(entry)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise ConflictError("Email already exists in whitelist") from exc
        raise
    return entry


async def remove_whitelist_email(session: AsyncSession, email: str) -> None:
    result = await session.execute(
        delete(WhitelistEmail).where(_eq(WhitelistEmail.email, email))
    )
    if int(cast(Any, result).rowcount or 0) == 0:
        await session.rollback()
        raise NotFoundError("Email not found in whitelist")
    await session.commit()


async def list_whitelist_emails(session: AsyncSession) -> list[str]:
    """Return whitelisted emails, most recently added first."""
    email_column = cast(ColumnElement[str], WhitelistEmail.email)
    result = await session.execute(
        select(email_column).order_by(
            _desc(WhitelistEmail.created_at),
            _desc(WhitelistEmail.id),
        )
    )
    return [row[0] for row in result.all()]
