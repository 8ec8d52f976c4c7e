"""Anchor fingerprint: position-independent description of a selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Characters of rendered text kept on each side of a selection
CONTEXT_LENGTH = 60


@dataclass(frozen=True, slots=True)
class AnchorFingerprint:
    """Selected text plus bounded surrounding context.

    ``location_id`` is a navigation hint only; the resolver never scores it.
    """

    selection_text: str
    prefix_context: str = ""
    suffix_context: str = ""
    location_id: str | None = None

    def __post_init__(self) -> None:
        if not self.selection_text:
            msg = "selection_text must be non-empty"
            raise ValueError(msg)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> AnchorFingerprint:
        """Build a fingerprint from a persisted record.

        Accepts both the store's column names and the short wire names.
        Missing or null context degrades to content-only matching.

        Raises:
            ValueError: If the record carries no selection text.
        """
        selection = record.get("selection_text") or record.get("selection_data")
        return cls(
            selection_text=selection or "",
            prefix_context=record.get("prefix_context") or record.get("prefix") or "",
            suffix_context=record.get("suffix_context") or record.get("suffix") or "",
            location_id=record.get("location_id") or None,
        )

    @property
    def has_context(self) -> bool:
        return bool(self.prefix_context or self.suffix_context)
