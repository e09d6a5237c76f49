"""File registry: database records paired with stored blobs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import ConflictError, NotFoundError
from db.errors import is_unique_violation
from models import FileRecord

from .storage import delete_blob

FILENAME_CONFLICT_DETAIL = "File with this name already exists"
logger = logging.getLogger(__name__)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


@dataclass(slots=True)
class FileDeletionOutcome:
    file_id: int
    record_deleted: bool
    physical_delete_attempted: bool
    physical_delete_succeeded: bool


async def register_file(session: AsyncSession, *, filename: str, path: str) -> FileRecord:
    """Insert a record; the unique filename constraint decides concurrent races."""
    record = FileRecord(filename=filename, path=path)
    session.add(record)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise ConflictError(FILENAME_CONFLICT_DETAIL) from exc
        raise
    return record


async def list_files(session: AsyncSession) -> list[FileRecord]:
    result = await session.execute(select(FileRecord).order_by(_asc(FileRecord.id)))
    return list(result.scalars().all())


async def get_file(session: AsyncSession, file_id: int) -> FileRecord:
    record = await session.get(FileRecord, file_id)
    if record is None:
        raise NotFoundError("File not found in database")
    return record


async def get_file_path(session: AsyncSession, file_id: int) -> str:
    return (await get_file(session, file_id)).path


async def delete_file(session: AsyncSession, file_id: int) -> FileDeletionOutcome:
    """Remove the blob best-effort, then remove the record.

    The blob goes first so an interruption leaves an orphaned blob rather than
    a record pointing at nothing. Blob failures are reported, not raised.
    """
    path = await get_file_path(session, file_id)

    physical_deleted = True
    try:
        await asyncio.to_thread(delete_blob, path)
    except OSError as exc:
        physical_deleted = False
        logger.warning(
            "Physical file deletion failed",
            extra={"file_id": file_id, "path": path},
            exc_info=exc,
        )

    try:
        result = await session.execute(delete(FileRecord).where(_eq(FileRecord.id, file_id)))
        if int(cast(Any, result).rowcount or 0) != 1:
            # A concurrent delete removed the record first.
            raise NotFoundError("File not found in database")
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return FileDeletionOutcome(
        file_id=file_id,
        record_deleted=True,
        physical_delete_attempted=True,
        physical_delete_succeeded=physical_deleted,
    )
