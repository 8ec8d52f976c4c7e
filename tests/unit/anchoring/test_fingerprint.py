"""Tests for AnchorFingerprint construction from persisted records."""

from __future__ import annotations

import pytest

from glossator.anchoring.fingerprint import AnchorFingerprint


class TestAnchorFingerprint:
    def test_empty_selection_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            AnchorFingerprint("")

    def test_from_store_record(self) -> None:
        fingerprint = AnchorFingerprint.from_record(
            {
                "selection_text": "Republic",
                "prefix_context": "The ",
                "suffix_context": " is",
                "location_id": "art_1",
            }
        )
        assert fingerprint == AnchorFingerprint("Republic", "The ", " is", "art_1")
        assert fingerprint.has_context

    def test_from_wire_record(self) -> None:
        fingerprint = AnchorFingerprint.from_record(
            {"selection_data": "Republic", "prefix": "The ", "suffix": None}
        )
        assert fingerprint.prefix_context == "The "
        assert fingerprint.suffix_context == ""

    def test_missing_context_degrades(self) -> None:
        fingerprint = AnchorFingerprint.from_record(
            {"selection_text": "Republic", "prefix_context": None, "location_id": ""}
        )
        assert not fingerprint.has_context
        assert fingerprint.location_id is None

    def test_record_without_selection_rejected(self) -> None:
        with pytest.raises(ValueError):
            AnchorFingerprint.from_record({"prefix_context": "x"})
