"""Application settings."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration, created once at startup."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "local"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./filegate.db"

    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=60, gt=0)
    reset_token_expire_minutes: int = Field(default=15, gt=0)
    password_hash_rounds: int = Field(default=12, ge=4, le=31)

    upload_dir: str = "uploads"
    upload_max_bytes: int = Field(default=50 * 1024 * 1024, gt=0)

    bootstrap_whitelist: list[str] = Field(default_factory=list)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def reset_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.reset_token_expire_minutes)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
