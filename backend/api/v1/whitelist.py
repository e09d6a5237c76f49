"""Login whitelist management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user_id, get_db
from services import add_whitelist_email, list_whitelist_emails, remove_whitelist_email

router = APIRouter(
    prefix="/whitelist",
    tags=["whitelist"],
    dependencies=[Depends(get_current_user_id)],
)


class WhitelistRequest(BaseModel):
    email: str = Field(max_length=255)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_entry(
    payload: WhitelistRequest,
    session: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    await add_whitelist_email(session, payload.email)
    return {"detail": "Email added to whitelist"}


@router.get("", response_model=list[str])
async def list_entries(session: AsyncSession = Depends(get_db)) -> list[str]:
    return await list_whitelist_emails(session)


@router.delete("/{email}")
async def remove_entry(
    email: str,
    session: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    await remove_whitelist_email(session, email)
    return {"detail": "Email removed from whitelist"}
