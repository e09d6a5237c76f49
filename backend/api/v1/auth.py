"""Authentication and password recovery endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, get_session_issuer, get_settings_dep
from core import Settings
from core.security import MAX_PASSWORD_BYTES
from services import accounts
from services.auth import (
    SessionTokenIssuer,
    consume_reset_token,
    register_user,
    validate_reset_token,
)

router = APIRouter(prefix="/auth", tags=["auth"])
MAX_EMAIL_LENGTH = 255


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class CredentialsRequest(BaseModel):
    email: str = Field(min_length=1, max_length=MAX_EMAIL_LENGTH)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def _limit_password_bytes(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    # No password rules here: any input must reach the whitelist gate.
    email: str
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class PasswordResetRequest(BaseModel):
    email: str = Field(min_length=1, max_length=MAX_EMAIL_LENGTH)


class PasswordResetTokenResponse(BaseModel):
    detail: str
    token: str
    expires_at: datetime


class ResetTokenPayload(BaseModel):
    token: str = Field(min_length=1)


class ResetTokenStatus(BaseModel):
    valid: bool
    user_id: str


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=1)

    @field_validator("new_password")
    @classmethod
    def _limit_password_bytes(cls, value: str) -> str:
        return _check_password_bytes(value)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    payload: CredentialsRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
) -> UserResponse:
    user = await register_user(
        session,
        email=payload.email,
        password=payload.password,
        rounds=settings.password_hash_rounds,
    )
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    issuer: SessionTokenIssuer = Depends(get_session_issuer),
    settings: Settings = Depends(get_settings_dep),
) -> TokenResponse:
    access_token = await accounts.login(
        session,
        email=payload.email,
        password=payload.password,
        issuer=issuer,
        rounds=settings.password_hash_rounds,
    )
    return TokenResponse(
        access_token=access_token,
        expires_in=int(issuer.ttl.total_seconds()),
    )


@router.post("/request-password-reset", response_model=PasswordResetTokenResponse)
async def request_password_reset(
    payload: PasswordResetRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
) -> PasswordResetTokenResponse:
    issued = await accounts.request_password_reset(
        session,
        email=payload.email,
        ttl=settings.reset_token_ttl,
    )
    return PasswordResetTokenResponse(
        detail="Password reset token generated",
        token=issued.token,
        expires_at=issued.expires_at,
    )


@router.post("/verify-reset-token", response_model=ResetTokenStatus)
async def verify_reset_token(
    payload: ResetTokenPayload,
    session: AsyncSession = Depends(get_db),
) -> ResetTokenStatus:
    user_id = await validate_reset_token(session, payload.token)
    return ResetTokenStatus(valid=True, user_id=user_id)


@router.post("/reset-password")
async def reset_password(
    payload: ResetPasswordRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
) -> dict[str, str]:
    await consume_reset_token(
        session,
        payload.token,
        payload.new_password,
        rounds=settings.password_hash_rounds,
    )
    return {"detail": "Password updated successfully"}
