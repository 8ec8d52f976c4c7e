"""CRUD operations for Annotation.

Every operation runs in its own session.  SQLAlchemy failures surface as
:class:`AnnotationStoreError` so callers can report them without knowing
about the database layer.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from glossator.db.engine import get_session
from glossator.db.models import Annotation

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from uuid import UUID

    from glossator.anchoring.fingerprint import AnchorFingerprint

logger = logging.getLogger(__name__)


class AnnotationStoreError(Exception):
    """Raised when the annotation store cannot complete an operation."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        super().__init__(f"Annotation store failed to {operation}: {detail}")


@asynccontextmanager
async def _store_operation(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise AnnotationStoreError(operation, str(e)) from e


async def create_annotation(
    user_id: str,
    document_id: str,
    fingerprint: AnchorFingerprint,
    comment_text: str = "",
    selection_offset: int | None = None,
) -> Annotation:
    """Persist a new annotation.

    Args:
        user_id: Owner of the annotation.
        document_id: Identifier of the annotated document.
        fingerprint: The captured selection fingerprint.
        comment_text: The note text.
        selection_offset: Visible offset at capture time (reference only).

    Returns:
        The created Annotation with generated ID.

    Raises:
        AnnotationStoreError: If the insert fails.
    """
    async with _store_operation("create annotation"), get_session() as session:
        annotation = Annotation(
            user_id=user_id,
            document_id=document_id,
            selection_text=fingerprint.selection_text,
            location_id=fingerprint.location_id,
            selection_offset=selection_offset,
            prefix_context=fingerprint.prefix_context,
            suffix_context=fingerprint.suffix_context,
            comment_text=comment_text,
        )
        session.add(annotation)
        await session.flush()
        await session.refresh(annotation)
    logger.debug("Created annotation %s on %s", annotation.id, document_id)
    return annotation


async def list_annotations(
    user_id: str, document_id: str | None = None
) -> list[Annotation]:
    """Get a user's annotations, ordered by creation time.

    Args:
        user_id: Owner of the annotations.
        document_id: Restrict to one document when given.

    Returns:
        List of Annotation objects.
    """
    statement = select(Annotation).where(Annotation.user_id == user_id)
    if document_id is not None:
        statement = statement.where(Annotation.document_id == document_id)
    async with _store_operation("list annotations"), get_session() as session:
        result = await session.exec(statement.order_by("created_at"))
        return list(result.all())


async def get_annotation(annotation_id: UUID) -> Annotation | None:
    """Get a single annotation by ID.

    Returns:
        The Annotation or None if not found.
    """
    async with _store_operation("get annotation"), get_session() as session:
        return await session.get(Annotation, annotation_id)


async def update_annotation_comment(
    annotation_id: UUID, comment_text: str
) -> Annotation | None:
    """Replace an annotation's note text.

    The fingerprint columns are never touched.

    Args:
        annotation_id: The annotation UUID.
        comment_text: The new note text.

    Returns:
        The updated Annotation, or None if not found.
    """
    async with _store_operation("update annotation"), get_session() as session:
        annotation = await session.get(Annotation, annotation_id)
        if not annotation:
            return None
        annotation.comment_text = comment_text
        session.add(annotation)
        await session.flush()
        await session.refresh(annotation)
        return annotation


async def delete_annotation(annotation_id: UUID) -> bool:
    """Delete an annotation.

    Returns:
        True if deleted, False if not found.
    """
    async with _store_operation("delete annotation"), get_session() as session:
        annotation = await session.get(Annotation, annotation_id)
        if not annotation:
            return False
        await session.delete(annotation)
        return True
