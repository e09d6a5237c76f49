"""Tests for the password reset token ledger and endpoints."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, cast

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import InvalidOrExpiredTokenError, NotFoundError, verify_password
from helpers import build_credentials, whitelist_email
from models import PasswordResetToken, User
from services.auth import (
    consume_reset_token,
    hash_reset_token,
    issue_reset_token,
    register_user,
    validate_reset_token,
)
from services.auth import reset_tokens as reset_tokens_module


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def _create_user(db_session: AsyncSession, password: str = "Sup3rSecret!") -> User:
    return await register_user(
        db_session,
        email=build_credentials()["email"],
        password=password,
        rounds=4,
    )


async def _stored_token(db_session: AsyncSession, token: str) -> PasswordResetToken:
    result = await db_session.execute(
        select(PasswordResetToken).where(
            _eq(PasswordResetToken.token_hash, hash_reset_token(token))
        )
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_request_password_reset_unknown_email(async_client):
    response = await async_client.post(
        "/api/v1/auth/request-password-reset",
        json={"email": "nobody@example.com"},
    )

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_request_password_reset_returns_token_in_band(
    async_client, db_session: AsyncSession
):
    payload = build_credentials()
    await async_client.post("/api/v1/auth/register", json=payload)

    before = datetime.now(timezone.utc)
    response = await async_client.post(
        "/api/v1/auth/request-password-reset",
        json={"email": payload["email"]},
    )

    assert response.status_code == 200
    data = response.json()
    token = data["token"]
    expires_at = datetime.fromisoformat(data["expires_at"])
    assert timedelta(minutes=14) < expires_at - before <= timedelta(minutes=15, seconds=5)

    stored = await _stored_token(db_session, token)
    assert stored.used is False
    assert stored.token_hash != token


@pytest.mark.asyncio
async def test_issue_reset_token_requires_existing_user(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await issue_reset_token(db_session, "missing-user-id")


@pytest.mark.asyncio
async def test_issued_tokens_are_unique(db_session: AsyncSession):
    user = await _create_user(db_session)

    first = await issue_reset_token(db_session, user.id)
    second = await issue_reset_token(db_session, user.id)

    assert first.token != second.token
    assert user.id not in first.token


@pytest.mark.asyncio
async def test_verify_reset_token(async_client):
    payload = build_credentials()
    registered = await async_client.post("/api/v1/auth/register", json=payload)
    issued = await async_client.post(
        "/api/v1/auth/request-password-reset",
        json={"email": payload["email"]},
    )

    response = await async_client.post(
        "/api/v1/auth/verify-reset-token",
        json={"token": issued.json()["token"]},
    )

    assert response.status_code == 200
    assert response.json() == {"valid": True, "user_id": registered.json()["id"]}


@pytest.mark.asyncio
async def test_verify_unknown_token(async_client):
    response = await async_client.post(
        "/api/v1/auth/verify-reset-token",
        json={"token": "does-not-exist"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "detail": "Invalid or expired token",
        "code": "invalid_or_expired",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("used", [False, True])
async def test_expired_token_never_validates(db_session: AsyncSession, used: bool):
    user = await _create_user(db_session)
    token = f"expired-token-{used}"
    db_session.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=hash_reset_token(token),
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
            used=used,
        )
    )
    await db_session.commit()

    with pytest.raises(InvalidOrExpiredTokenError):
        await validate_reset_token(db_session, token)
    with pytest.raises(InvalidOrExpiredTokenError):
        await consume_reset_token(db_session, token, "NewPassword1!", rounds=4)


@pytest.mark.asyncio
async def test_used_token_never_validates(db_session: AsyncSession):
    user = await _create_user(db_session)
    issued = await issue_reset_token(db_session, user.id)
    stored = await _stored_token(db_session, issued.token)
    stored.used = True
    await db_session.commit()

    with pytest.raises(InvalidOrExpiredTokenError):
        await validate_reset_token(db_session, issued.token)


@pytest.mark.asyncio
async def test_reset_password_changes_password_and_burns_token(
    async_client, db_session: AsyncSession
):
    payload = build_credentials()
    await async_client.post("/api/v1/auth/register", json=payload)
    issued = await async_client.post(
        "/api/v1/auth/request-password-reset",
        json={"email": payload["email"]},
    )
    token = issued.json()["token"]

    response = await async_client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "new_password": "BrandNew123!"},
    )
    assert response.status_code == 200
    assert response.json() == {"detail": "Password updated successfully"}

    stored = await _stored_token(db_session, token)
    assert stored.used is True
    user = await db_session.get(User, stored.user_id)
    assert user is not None
    assert verify_password("BrandNew123!", user.password_hash)

    reuse = await async_client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "new_password": "Another123!"},
    )
    assert reuse.status_code == 400
    assert reuse.json()["code"] == "invalid_or_expired"


@pytest.mark.asyncio
async def test_concurrent_consumption_succeeds_once(async_client, db_session: AsyncSession):
    payload = build_credentials()
    await async_client.post("/api/v1/auth/register", json=payload)
    issued = await async_client.post(
        "/api/v1/auth/request-password-reset",
        json={"email": payload["email"]},
    )
    token = issued.json()["token"]

    responses = await asyncio.gather(
        *(
            async_client.post(
                "/api/v1/auth/reset-password",
                json={"token": token, "new_password": f"Concurrent{index}!"},
            )
            for index in range(3)
        )
    )

    statuses = sorted(response.status_code for response in responses)
    assert statuses == [200, 400, 400]
    winner_index = next(
        index for index, response in enumerate(responses) if response.status_code == 200
    )

    stored = await _stored_token(db_session, token)
    user = await db_session.get(User, stored.user_id)
    assert user is not None
    assert verify_password(f"Concurrent{winner_index}!", user.password_hash)


@pytest.mark.asyncio
async def test_failed_password_update_leaves_token_unused(
    db_session: AsyncSession, session_maker, monkeypatch
):
    user = await _create_user(db_session, password="Original123!")
    user_id = user.id
    issued = await issue_reset_token(db_session, user_id)

    async def failing_update(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(reset_tokens_module, "update_password", failing_update)

    with pytest.raises(RuntimeError):
        await consume_reset_token(db_session, issued.token, "NewPassword1!", rounds=4)

    async with session_maker() as fresh_session:
        stored = await _stored_token(fresh_session, issued.token)
        assert stored.used is False
        reloaded = await fresh_session.get(User, user_id)
        assert reloaded is not None
        assert verify_password("Original123!", reloaded.password_hash)
        assert await validate_reset_token(fresh_session, issued.token) == user_id


@pytest.mark.asyncio
async def test_password_reset_end_to_end(async_client, session_maker):
    credentials = {"email": "a@x.com", "password": "pw1"}
    register = await async_client.post("/api/v1/auth/register", json=credentials)
    assert register.status_code == 201

    blocked = await async_client.post("/api/v1/auth/login", json=credentials)
    assert blocked.status_code == 403

    await whitelist_email(session_maker, "a@x.com")
    login = await async_client.post("/api/v1/auth/login", json=credentials)
    assert login.status_code == 200
    assert login.json()["access_token"]

    issued = await async_client.post(
        "/api/v1/auth/request-password-reset",
        json={"email": "a@x.com"},
    )
    token = issued.json()["token"]
    reset = await async_client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "new_password": "pw2"},
    )
    assert reset.status_code == 200

    old_login = await async_client.post("/api/v1/auth/login", json=credentials)
    assert old_login.status_code == 401
    new_login = await async_client.post(
        "/api/v1/auth/login",
        json={"email": "a@x.com", "password": "pw2"},
    )
    assert new_login.status_code == 200

    reuse = await async_client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "new_password": "pw3"},
    )
    assert reuse.status_code == 400
    assert reuse.json()["code"] == "invalid_or_expired"
