"""Registered file model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlmodel import Field, SQLModel


class FileRecord(SQLModel, table=True):
    """Database half of an uploaded file; ``path`` points at the stored blob."""

    __tablename__ = "files"

    id: int | None = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    filename: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False)
    )
    path: str = Field(
        sa_column=Column(String(1024), nullable=False)
    )
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
