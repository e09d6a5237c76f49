"""Shared helpers for API tests."""

from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.whitelist import add_whitelist_email


def build_credentials() -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "email": f"alice_{suffix}@example.com",
        "password": "Sup3rSecret!",
    }


async def whitelist_email(
    session_maker: async_sessionmaker[AsyncSession],
    email: str,
) -> None:
    async with session_maker() as session:
        await add_whitelist_email(session, email)


async def whitelist_and_login(
    client: AsyncClient,
    session_maker: async_sessionmaker[AsyncSession],
    credentials: dict[str, str],
) -> dict[str, str]:
    """Register, whitelist and log in; return bearer headers."""
    register = await client.post("/api/v1/auth/register", json=credentials)
    assert register.status_code == 201
    await whitelist_email(session_maker, credentials["email"])
    login = await client.post("/api/v1/auth/login", json=credentials)
    assert login.status_code == 200
    return {"Authorization": f"Bearer {login.json()['access_token']}"}
