"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core import Settings, UnauthorizedError
from db.session import get_session
from models import User
from services.auth import SessionTokenIssuer

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_session_issuer(request: Request) -> SessionTokenIssuer:
    return request.app.state.session_issuer


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async for session in get_session(request.app.state.session_maker):
        yield session


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    issuer: SessionTokenIssuer = Depends(get_session_issuer),
) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError()
    return issuer.verify(credentials.credentials)


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> User:
    user = await session.get(User, user_id)
    if user is None:
        # Token outlived its account.
        raise UnauthorizedError()
    return user
