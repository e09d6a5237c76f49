"""Current-account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_current_user_id, get_db, get_settings_dep
from core import Settings
from models import User
from services import accounts

from .auth import UserResponse

router = APIRouter(tags=["users"])


class DeleteAccountRequest(BaseModel):
    password: str


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.delete("/me")
async def delete_me(
    payload: DeleteAccountRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
) -> dict[str, str]:
    await accounts.delete_account(
        session,
        user_id=user_id,
        password=payload.password,
        rounds=settings.password_hash_rounds,
    )
    return {"detail": "User account deleted successfully"}
