"""Tests for glossator.config: Settings, sub-models and the cached accessor.

Every test constructs Settings(_env_file=None, ...) to avoid reading real .env files.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from pydantic import SecretStr, ValidationError

from glossator.config import (
    AnchoringConfig,
    AppConfig,
    DatabaseConfig,
    LlmConfig,
    ProviderConfig,
    Settings,
    get_settings,
)

if TYPE_CHECKING:
    from pytest import MonkeyPatch


class TestDefaults:
    """Defaults apply when nothing is configured."""

    def test_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.database.url == "sqlite+aiosqlite:///glossator.db"
        assert s.database.echo is False
        assert s.llm.api_key.get_secret_value() == ""
        assert s.llm.target_language == "English"
        assert s.provider.timeout == 30.0
        assert s.anchoring.context_length == 60
        assert s.app.log_dir == Path("logs")

    def test_explicit_sub_models(self) -> None:
        s = Settings(
            _env_file=None,  # type: ignore[call-arg]
            database=DatabaseConfig(url="sqlite+aiosqlite:///x.db", echo=True),
            llm=LlmConfig(api_key=SecretStr("sk-test"), max_tokens=256),
            provider=ProviderConfig(base_url="https://laws.example", timeout=5),
            anchoring=AnchoringConfig(context_length=30),
            app=AppConfig(state_path=Path("/tmp/state.json")),
        )
        assert s.database.echo is True
        assert s.llm.api_key.get_secret_value() == "sk-test"
        assert s.llm.max_tokens == 256
        assert s.provider.base_url == "https://laws.example"
        assert s.anchoring.context_length == 30
        assert s.app.state_path == Path("/tmp/state.json")


class TestEnvironment:
    """Nested variables use the double-underscore delimiter."""

    def test_nested_env_vars(self, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER__BASE_URL", "https://laws.example")
        monkeypatch.setenv("LLM__TARGET_LANGUAGE", "German")
        monkeypatch.setenv("ANCHORING__CONTEXT_LENGTH", "40")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.provider.base_url == "https://laws.example"
        assert s.llm.target_language == "German"
        assert s.anchoring.context_length == 40

    def test_api_key_is_secret(self, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setenv("LLM__API_KEY", "sk-hidden")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert "sk-hidden" not in repr(s)
        assert s.llm.api_key.get_secret_value() == "sk-hidden"

    def test_invalid_type_rejected(self, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER__TIMEOUT", "soon")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]


class TestAnchoringConfig:
    @pytest.mark.parametrize("value", [0, -5])
    def test_context_length_must_be_positive(self, value: int) -> None:
        with pytest.raises(ValidationError, match="must be positive"):
            AnchoringConfig(context_length=value)


class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_rereads(self, monkeypatch: MonkeyPatch) -> None:
        first = get_settings()
        monkeypatch.setenv("DATABASE__ECHO", "true")
        assert get_settings() is first
        get_settings.cache_clear()
        assert get_settings().database.echo is True
