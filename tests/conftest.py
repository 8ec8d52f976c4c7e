"""Shared pytest fixtures for Glossator tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

from glossator.config import Settings, get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

_SETTINGS_PREFIXES = ("DATABASE__", "LLM__", "PROVIDER__", "ANCHORING__", "APP__")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep real environment configuration out of every test.

    Nested-settings variables and the .env file are ignored, and the
    settings cache is reset before and after each test.
    """
    for key in list(os.environ):
        if key.startswith(_SETTINGS_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def store_db(tmp_path: Path) -> AsyncIterator[str]:
    """Annotation store backed by a temporary SQLite file."""
    from glossator.db.engine import close_db, init_db

    url = f"sqlite+aiosqlite:///{tmp_path / 'annotations.db'}"
    await init_db(url)
    try:
        yield url
    finally:
        await close_db()
