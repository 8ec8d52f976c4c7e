"""Tests for the persisted reader context."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from glossator.reader.context import ReaderContext, ReaderContextStore

if TYPE_CHECKING:
    from pathlib import Path


class TestReaderContextStore:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        store = ReaderContextStore(tmp_path / "state.json")
        assert store.load() == ReaderContext()

    def test_update_persists(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "state.json"
        store = ReaderContextStore(path)
        store.load()

        store.update(user_id="u42", mode="dark")

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["user_id"] == "u42"
        assert saved["mode"] == "dark"
        reloaded = ReaderContextStore(path).load()
        assert reloaded.user_id == "u42"
        assert reloaded.theme == "default"

    def test_invalid_update_not_written(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        store = ReaderContextStore(path)
        with pytest.raises(ValidationError):
            store.update(mode="sepia")
        assert not path.exists()
        assert store.context.mode == "light"

    def test_invalid_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        path.write_text('{"mode": "sepia"}', encoding="utf-8")
        assert ReaderContextStore(path).load() == ReaderContext()

    def test_corrupt_json_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")
        assert ReaderContextStore(path).load() == ReaderContext()
