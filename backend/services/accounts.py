"""Multi-store account and file workflows.

Each function that touches more than one table runs as a single transaction
on the given session: it commits once at the end or rolls back everything.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import BinaryIO

from sqlalchemy.ext.asyncio import AsyncSession

from core import (
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    UnauthorizedError,
    hash_password,
    needs_rehash,
)
from core.security import DEFAULT_BCRYPT_ROUNDS
from models import FileRecord, User

from .auth.credentials import check_user_password, delete_user_row, get_user_by_email
from .auth.reset_tokens import (
    RESET_TOKEN_TTL,
    IssuedResetToken,
    delete_reset_tokens_for_user,
    issue_reset_token,
)
from .auth.sessions import SessionTokenIssuer
from .files import FileDeletionOutcome, delete_file, register_file
from .storage import UploadTooLargeError, delete_blob, store_upload
from .whitelist import is_whitelisted

NOT_WHITELISTED_DETAIL = "Access denied. Your email is not whitelisted."
INVALID_CREDENTIALS_DETAIL = "Invalid credentials"
INVALID_PASSWORD_DETAIL = "Invalid password"
logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StoredUpload:
    record: FileRecord
    path: str


async def login(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    issuer: SessionTokenIssuer,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> str:
    """Return a session token for a whitelisted email with matching credentials.

    The whitelist is checked first and rejects with a policy error; unknown
    users and wrong passwords share one generic error.
    """
    if not await is_whitelisted(session, email):
        logger.warning("Login rejected for non-whitelisted email")
        raise ForbiddenError(NOT_WHITELISTED_DETAIL)

    user = await get_user_by_email(session, email)
    if not check_user_password(user, password, rounds=rounds) or user is None:
        logger.warning("Login rejected for invalid credentials")
        raise UnauthorizedError(INVALID_CREDENTIALS_DETAIL)

    if needs_rehash(user.password_hash, rounds=rounds):
        user.password_hash = hash_password(password, rounds=rounds)
        session.add(user)
        await session.commit()

    return issuer.issue(user.id)


async def delete_account(
    session: AsyncSession,
    *,
    user_id: str,
    password: str,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> None:
    """Delete the user's reset tokens and then the user row, all or nothing."""
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not check_user_password(user, password, rounds=rounds):
        raise UnauthorizedError(INVALID_PASSWORD_DETAIL)

    try:
        removed_tokens = await delete_reset_tokens_for_user(session, user_id)
        if not await delete_user_row(session, user_id):
            raise NotFoundError("User not found")
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Deleted user account",
        extra={"user_id": user_id, "removed_reset_tokens": removed_tokens},
    )


async def request_password_reset(
    session: AsyncSession,
    *,
    email: str,
    ttl: timedelta = RESET_TOKEN_TTL,
) -> IssuedResetToken:
    # The token goes back to the requester in-band; there is no mail delivery.
    user = await get_user_by_email(session, email)
    if user is None:
        raise NotFoundError("User not found")
    return await issue_reset_token(session, user.id, ttl=ttl)


async def upload_file(
    session: AsyncSession,
    *,
    filename: str,
    source: BinaryIO,
    upload_dir: str | Path,
    max_bytes: int,
) -> StoredUpload:
    """Store the blob, then register it; a rejected record removes its blob."""
    try:
        blob_path = await asyncio.to_thread(
            store_upload,
            source,
            upload_dir,
            max_bytes=max_bytes,
        )
    except UploadTooLargeError as exc:
        raise PayloadTooLargeError(
            f"File too large (max {max_bytes} bytes)"
        ) from exc

    path = str(blob_path)
    try:
        record = await register_file(session, filename=filename, path=path)
    except Exception:
        try:
            await asyncio.to_thread(delete_blob, path)
        except OSError as cleanup_error:
            logger.warning(
                "Failed to cleanup stored blob after rejected upload",
                extra={"path": path},
                exc_info=cleanup_error,
            )
        raise
    return StoredUpload(record=record, path=path)


async def remove_file(session: AsyncSession, file_id: int) -> FileDeletionOutcome:
    return await delete_file(session, file_id)
