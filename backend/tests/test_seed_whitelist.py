"""Tests for the whitelist bootstrap script."""

import pytest

from scripts import seed_whitelist as seed_script
from services import list_whitelist_emails


def test_parse_emails_strips_and_deduplicates() -> None:
    parsed = seed_script._parse_emails([" admin@example.com ", "", "admin@example.com", "ops@example.com"])

    assert parsed == ["admin@example.com", "ops@example.com"]


def test_parse_emails_rejects_malformed() -> None:
    with pytest.raises(ValueError):
        seed_script._parse_emails(["not-an-email"])


@pytest.mark.asyncio
async def test_seed_whitelist_skips_existing(session_maker) -> None:
    added, skipped = await seed_script.seed_whitelist(
        session_maker, ["admin@example.com"]
    )
    assert added == ["admin@example.com"]
    assert skipped == []

    added, skipped = await seed_script.seed_whitelist(
        session_maker, ["admin@example.com", "ops@example.com"]
    )
    assert added == ["ops@example.com"]
    assert skipped == ["admin@example.com"]

    async with session_maker() as session:
        assert sorted(await list_whitelist_emails(session)) == [
            "admin@example.com",
            "ops@example.com",
        ]


@pytest.mark.asyncio
async def test_run_uses_bootstrap_setting(test_settings, session_maker, capsys) -> None:
    configured = test_settings.model_copy(
        update={"bootstrap_whitelist": ["boot@example.com"]}
    )

    exit_code = await seed_script.run([], configured)

    assert exit_code == 0
    assert "Whitelisted boot@example.com" in capsys.readouterr().out
    async with session_maker() as session:
        assert await list_whitelist_emails(session) == ["boot@example.com"]
