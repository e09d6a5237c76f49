"""Local filesystem blob storage for uploaded files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

COPY_CHUNK_BYTES = 1024 * 1024


class UploadTooLargeError(Exception):
    """Raised when an upload exceeds the configured byte limit."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"Upload exceeds {max_bytes} bytes")
        self.max_bytes = max_bytes


def ensure_upload_dir(directory: str | Path) -> Path:
    """Ensure the upload directory exists and return it."""
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return path


def store_upload(source: BinaryIO, directory: str | Path, *, max_bytes: int) -> Path:
    """Copy ``source`` into a randomly named blob, enforcing ``max_bytes``.

    The partial blob is removed when the limit is exceeded or the copy fails.
    """
    if max_bytes <= 0:
        raise ValueError("max_bytes must be positive")

    target = ensure_upload_dir(directory) / uuid4().hex
    written = 0
    try:
        with target.open("xb") as destination:
            while chunk := source.read(COPY_CHUNK_BYTES):
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(max_bytes)
                destination.write(chunk)
    except Exception:
        target.unlink(missing_ok=True)
        raise
    return target


def delete_blob(path: str | Path) -> None:
    """Remove a stored blob. Raises ``OSError`` when the file cannot be removed."""
    os.remove(path)
