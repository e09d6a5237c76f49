"""Pytest fixtures for the filegate backend."""

from collections.abc import AsyncIterator
from pathlib import Path

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from app import create_app
from core.config import Settings, settings
from helpers import build_credentials, whitelist_and_login

TEST_PASSWORD_HASH_ROUNDS = 4


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "backend-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest.fixture()
def test_settings(test_database_url: str, tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        database_url=test_database_url,
        jwt_secret_key="test-secret-key-with-enough-length-for-hs256",
        password_hash_rounds=TEST_PASSWORD_HASH_ROUNDS,
        upload_dir=str(tmp_path / "uploads"),
        upload_max_bytes=1024,
    )


@pytest_asyncio.fixture()
async def app(test_settings: Settings) -> AsyncIterator[FastAPI]:
    """Create the FastAPI app bound to the migrated test database."""
    application = create_app(test_settings)
    yield application
    await application.state.engine.dispose()


@pytest.fixture()
def session_maker(app: FastAPI) -> async_sessionmaker[AsyncSession]:
    """Return the app's session factory."""
    return app.state.session_maker


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture(autouse=True)
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before each test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture()
async def auth_headers(async_client, session_maker) -> dict[str, str]:
    return await whitelist_and_login(async_client, session_maker, build_credentials())
