"""File upload, listing and deletion endpoints.

Listing and deletion by id do not require a session; only upload does.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user_id, get_db, get_settings_dep
from core import BadRequestError, GatewayError, Settings
from services import accounts, get_file, list_files

router = APIRouter(prefix="/files", tags=["files"])


class FileRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    path: str


class UploadResponse(BaseModel):
    detail: str
    file_id: int
    filename: str
    path: str


class DeletionDetails(BaseModel):
    record_deleted: bool
    physical_file_deleted: bool
    deleted_id: int


class DeleteFileResponse(BaseModel):
    detail: str
    details: DeletionDetails


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
async def upload_file(
    file: UploadFile | None = File(default=None),
    _user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
) -> UploadResponse:
    if file is None or not file.filename:
        raise BadRequestError("No file uploaded")

    try:
        stored = await accounts.upload_file(
            session,
            filename=file.filename,
            source=file.file,
            upload_dir=settings.upload_dir,
            max_bytes=settings.upload_max_bytes,
        )
    finally:
        await file.close()

    record_id = stored.record.id
    if record_id is None:
        raise GatewayError("File record is missing an identifier")
    return UploadResponse(
        detail="File uploaded successfully",
        file_id=record_id,
        filename=stored.record.filename,
        path=stored.path,
    )


@router.get("", response_model=list[FileRecordResponse])
async def get_files(session: AsyncSession = Depends(get_db)) -> list[FileRecordResponse]:
    records = await list_files(session)
    return [FileRecordResponse.model_validate(record) for record in records]


@router.get("/{file_id}", response_model=FileRecordResponse)
async def get_file_detail(
    file_id: int,
    session: AsyncSession = Depends(get_db),
) -> FileRecordResponse:
    return FileRecordResponse.model_validate(await get_file(session, file_id))


@router.delete("/{file_id}", response_model=DeleteFileResponse)
async def delete_file(
    file_id: int,
    session: AsyncSession = Depends(get_db),
) -> DeleteFileResponse:
    outcome = await accounts.remove_file(session, file_id)
    detail = (
        "File deleted completely"
        if outcome.physical_delete_succeeded
        else "File record deleted; physical file could not be removed"
    )
    return DeleteFileResponse(
        detail=detail,
        details=DeletionDetails(
            record_deleted=outcome.record_deleted,
            physical_file_deleted=outcome.physical_delete_succeeded,
            deleted_id=outcome.file_id,
        ),
    )
