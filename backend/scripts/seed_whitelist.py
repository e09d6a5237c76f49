"""Seed the login whitelist.

Adding whitelist entries over HTTP needs a session, and a session needs a
whitelisted email, so the first entries come from here.

Usage:
    python scripts/seed_whitelist.py admin@example.com ops@example.com

With no arguments the BOOTSTRAP_WHITELIST setting (a JSON list) is used.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from core import ConflictError, Settings, settings  # noqa: E402
from db import create_engine_from_settings, create_session_maker  # noqa: E402
from services.whitelist import add_whitelist_email, is_valid_email_shape  # noqa: E402


def _parse_emails(raw_emails: Sequence[str]) -> list[str]:
    emails: list[str] = []
    for raw_email in raw_emails:
        email = raw_email.strip()
        if not email:
            continue
        if not is_valid_email_shape(email):
            raise ValueError(f"Invalid email format: {email!r}")
        if email not in emails:
            emails.append(email)
    return emails


async def seed_whitelist(
    session_maker: async_sessionmaker[AsyncSession],
    emails: Sequence[str],
) -> tuple[list[str], list[str]]:
    """Add each email; return (added, already_present)."""
    added: list[str] = []
    skipped: list[str] = []
    for email in emails:
        async with session_maker() as session:
            try:
                await add_whitelist_email(session, email)
            except ConflictError:
                skipped.append(email)
                continue
        added.append(email)
    return added, skipped


async def run(argv: Sequence[str], app_settings: Settings = settings) -> int:
    emails = _parse_emails(argv or app_settings.bootstrap_whitelist)
    if not emails:
        print("No emails to whitelist")
        return 0

    engine = create_engine_from_settings(app_settings)
    try:
        added, skipped = await seed_whitelist(create_session_maker(engine), emails)
    finally:
        await engine.dispose()

    for email in added:
        print(f"Whitelisted {email}")
    for email in skipped:
        print(f"Already whitelisted {email}")
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(run(sys.argv[1:])))


if __name__ == "__main__":
    main()
