"""SQLModel database models for Glossator."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from glossator.anchoring.fingerprint import AnchorFingerprint


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def _timestamp_column() -> Any:
    return Column(DateTime(timezone=True), nullable=False, index=True)


class Annotation(SQLModel, table=True):
    """A user's note anchored to a span of a document.

    The fingerprint columns (selection text, contexts, location id) are
    written once at creation; only ``comment_text`` changes afterwards.

    Attributes:
        id: Primary key UUID, auto-generated.
        user_id: Owner of the annotation.
        document_id: Identifier of the annotated document.
        selection_text: Exact selected text, whitespace-trimmed.
        location_id: Structural anchor near the selection (navigation only).
        selection_offset: Visible offset at capture time (reference only).
        prefix_context: Up to 60 characters before the selection.
        suffix_context: Up to 60 characters after the selection.
        comment_text: The note itself.
        created_at: Timestamp when the annotation was created.
    """

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True, max_length=255)
    document_id: str = Field(index=True, max_length=255)
    selection_text: str = Field(sa_column=Column(sa.Text(), nullable=False))
    location_id: str | None = Field(default=None, max_length=255)
    selection_offset: int | None = Field(default=None)
    prefix_context: str = Field(default="", sa_column=Column(sa.Text(), nullable=False))
    suffix_context: str = Field(default="", sa_column=Column(sa.Text(), nullable=False))
    comment_text: str = Field(default="", sa_column=Column(sa.Text(), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=_timestamp_column())

    @property
    def fingerprint(self) -> AnchorFingerprint:
        """The anchoring fingerprint persisted with this annotation."""
        return AnchorFingerprint(
            selection_text=self.selection_text,
            prefix_context=self.prefix_context or "",
            suffix_context=self.suffix_context or "",
            location_id=self.location_id,
        )
