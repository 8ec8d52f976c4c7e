"""Reader context: the active user and display preferences.

The context is loaded once at startup and written back on every change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class ReaderContext(BaseModel):
    """Shared reader state persisted between runs."""

    user_id: str = "anonymous"
    user_name: str | None = None
    theme: str = "default"
    mode: Literal["light", "dark"] = "light"
    ui_language: str = "it"


class ReaderContextStore:
    """Loads and persists a :class:`ReaderContext` as JSON."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.context = ReaderContext()

    def load(self) -> ReaderContext:
        """Read the context file; a missing or invalid file yields defaults."""
        if not self.path.is_file():
            logger.info("No reader context at %s, using defaults", self.path)
            self.context = ReaderContext()
            return self.context
        try:
            self.context = ReaderContext.model_validate_json(
                self.path.read_text(encoding="utf-8")
            )
        except ValidationError:
            logger.warning("Discarding invalid reader context at %s", self.path)
            self.context = ReaderContext()
        return self.context

    def update(self, **changes: Any) -> ReaderContext:
        """Apply changes, validate them and persist the result.

        Raises:
            pydantic.ValidationError: If a change is invalid; nothing is
                written in that case.
        """
        merged = self.context.model_dump() | changes
        self.context = ReaderContext.model_validate(merged)
        self._save()
        return self.context

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.context.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Reader context saved to %s", self.path)
