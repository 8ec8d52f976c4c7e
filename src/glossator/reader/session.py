"""Reader session: one user reading and annotating one document at a time.

The session is event driven.  Document arrival, selection release and
store responses each update it; after every successful store write the
annotation list is refetched and the current body re-rendered.  Fetches
are never cancelled: a response for a document that is no longer selected
is dropped on arrival.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from glossator.anchoring.capture import capture_selection
from glossator.anchoring.fingerprint import CONTEXT_LENGTH
from glossator.anchoring.injector import render_annotated_body
from glossator.anchoring.rendered_view import RenderedView
from glossator.db import annotations as annotation_crud
from glossator.db.annotations import AnnotationStoreError
from glossator.documents.provider import DocumentFetchError, DocumentNotFoundError
from glossator.llm.assist import prefill_note
from glossator.reader.editor import EditorState, NoteEditor
from glossator.reader.sections import SectionTracker

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date
    from uuid import UUID

    from glossator.anchoring.capture import CapturedSelection
    from glossator.anchoring.fingerprint import AnchorFingerprint
    from glossator.anchoring.injector import RenderResult
    from glossator.anchoring.rendered_view import TocEntry
    from glossator.db.models import Annotation
    from glossator.documents.provider import FetchedDocument
    from glossator.llm.assist import AssistAction, TextAssistClient
    from glossator.reader.context import ReaderContextStore

logger = logging.getLogger(__name__)

_notice_ids = itertools.count(1)


class AnnotationStore(Protocol):
    """CRUD interface the session persists annotations through."""

    async def create(
        self,
        user_id: str,
        document_id: str,
        fingerprint: AnchorFingerprint,
        comment_text: str,
        selection_offset: int | None,
    ) -> Annotation: ...

    async def list_for_document(
        self, user_id: str, document_id: str
    ) -> list[Annotation]: ...

    async def update_comment(
        self, annotation_id: UUID, comment_text: str
    ) -> Annotation | None: ...

    async def delete(self, annotation_id: UUID) -> bool: ...


class DocumentSource(Protocol):
    """Anything that can fetch a formatted document body."""

    async def fetch(
        self, document_id: str, as_of: date, vigenza: date | None = None
    ) -> FetchedDocument: ...


class SqlAnnotationStore:
    """:class:`AnnotationStore` backed by the SQLModel annotation table."""

    async def create(
        self,
        user_id: str,
        document_id: str,
        fingerprint: AnchorFingerprint,
        comment_text: str,
        selection_offset: int | None,
    ) -> Annotation:
        return await annotation_crud.create_annotation(
            user_id,
            document_id,
            fingerprint,
            comment_text=comment_text,
            selection_offset=selection_offset,
        )

    async def list_for_document(
        self, user_id: str, document_id: str
    ) -> list[Annotation]:
        return await annotation_crud.list_annotations(user_id, document_id)

    async def update_comment(
        self, annotation_id: UUID, comment_text: str
    ) -> Annotation | None:
        return await annotation_crud.update_annotation_comment(
            annotation_id, comment_text
        )

    async def delete(self, annotation_id: UUID) -> bool:
        return await annotation_crud.delete_annotation(annotation_id)


@dataclass(frozen=True, slots=True)
class Notice:
    """A dismissible message for the user."""

    message: str
    level: str = "error"
    id: int = field(default_factory=lambda: next(_notice_ids))


class ReaderSession:
    """State for reading and annotating the currently selected document."""

    def __init__(
        self,
        store: AnnotationStore,
        provider: DocumentSource,
        context: ReaderContextStore,
        *,
        assist: TextAssistClient | None = None,
        on_active_section: Callable[[str | None], None] | None = None,
        context_length: int = CONTEXT_LENGTH,
    ) -> None:
        self.store = store
        self.provider = provider
        self.context = context
        self.assist = assist
        self.context_length = context_length
        self.editor = NoteEditor()
        self.notices: list[Notice] = []
        self.document: FetchedDocument | None = None
        self.annotations: list[Annotation] = []
        self.rendered: RenderResult | None = None
        self.view: RenderedView | None = None
        self._selected: tuple[str, date] | None = None
        self._saving: CapturedSelection | None = None
        self._sections = SectionTracker(on_active_section)

    @property
    def user_id(self) -> str:
        return self.context.context.user_id

    @property
    def toc(self) -> list[TocEntry]:
        """Table of contents of the current document."""
        if self.view is None:
            return []
        return self.view.table_of_contents()

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------

    def notify(self, message: str, level: str = "error") -> Notice:
        notice = Notice(message=message, level=level)
        self.notices.append(notice)
        return notice

    def dismiss_notice(self, notice_id: int) -> None:
        self.notices = [n for n in self.notices if n.id != notice_id]

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------

    async def open_document(
        self, document_id: str, as_of: date, vigenza: date | None = None
    ) -> bool:
        """Select a document and load it with the user's annotations.

        Returns:
            True if the document is now displayed.  False when the fetch
            failed (a notice is raised) or a newer selection superseded it.
        """
        key = (document_id, as_of)
        self._selected = key
        try:
            document = await self.provider.fetch(document_id, as_of, vigenza)
        except DocumentNotFoundError:
            if self._selected == key:
                self.notify(f"Document {document_id} was not found.")
            return False
        except DocumentFetchError:
            logger.warning("Fetching %s failed", document_id, exc_info=True)
            if self._selected == key:
                self.notify(f"Could not load document {document_id}. Please retry.")
            return False

        if self._selected != key:
            logger.debug("Discarding late response for %s (%s)", document_id, as_of)
            return False

        self.document = document
        self.editor.reset()
        self.annotations = []
        self._render(new_document=True)
        await self._refresh_annotations()
        return self._selected == key

    async def _refresh_annotations(self) -> None:
        """Refetch the user's annotations and re-render the current body."""
        document = self.document
        if document is None:
            return
        try:
            annotations = await self.store.list_for_document(
                self.user_id, document.document_id
            )
        except AnnotationStoreError:
            logger.warning("Listing annotations failed", exc_info=True)
            self.notify("Could not load your notes for this document.")
            return
        if self.document is not document:
            logger.debug("Document changed while listing annotations, ignoring")
            return
        self.annotations = annotations
        self._render()

    def _render(self, *, new_document: bool = False) -> None:
        if self.document is None:
            return
        self.rendered = render_annotated_body(self.document.body, self.annotations)
        self.view = RenderedView.from_body(self.rendered.body)
        if new_document:
            self._sections.reset(self.view)
        else:
            self._sections.rebind(self.view)

    def report_visible_offset(self, offset: int) -> str | None:
        """Tell the session which visible offset is at the top of the viewport."""
        return self._sections.report_visible_offset(offset)

    # ------------------------------------------------------------------
    # Selection and notes
    # ------------------------------------------------------------------

    def pointer_down(self) -> None:
        self.editor.pointer_down()

    def release_selection(
        self, start: int, end: int, x: float = 0.0, y: float = 0.0
    ) -> CapturedSelection | None:
        """Capture a completed selection; empty selections are a no-op."""
        if self.view is None:
            return None
        captured = capture_selection(
            self.view, start, end, context_length=self.context_length
        )
        self.editor.selection_released(captured, x, y)
        return captured

    async def prefill(self, action: AssistAction | str) -> str:
        """Fill the note draft from the text-assist provider."""
        pending = self.editor.pending
        if self.assist is None or pending is None:
            return ""
        text = await prefill_note(
            self.assist, pending.fingerprint.selection_text, action
        )
        if text and self.editor.pending is pending:
            self.editor.draft = text
        return text

    async def commit_note(self, comment_text: str | None = None) -> Annotation | None:
        """Store the pending selection with its note.

        On failure a notice is raised and the pending selection is kept so
        the user can retry.  A selection made while the store call is in
        flight replaces the committed one in the editor and stays open.
        """
        pending = self.editor.pending
        if pending is None or self.document is None:
            return None
        if self.editor.state is not EditorState.EDITING_NOTE:
            logger.debug("Ignoring commit in state %s", self.editor.state)
            return None
        if pending is self._saving:
            logger.debug("Commit already in flight for this selection")
            return None
        text = self.editor.draft if comment_text is None else comment_text
        self._saving = pending
        try:
            annotation = await self.store.create(
                self.user_id,
                self.document.document_id,
                pending.fingerprint,
                text,
                pending.selection_offset,
            )
        except AnnotationStoreError:
            logger.warning("Saving annotation failed", exc_info=True)
            self.notify("Could not save your note. Please retry.")
            return None
        finally:
            self._saving = None
        if self.editor.pending is pending and not self.editor.commit():
            self.editor.reset()
        await self._refresh_annotations()
        return annotation

    def cancel_note(self) -> None:
        self.editor.cancel()

    async def update_note(self, annotation_id: UUID, comment_text: str) -> bool:
        try:
            updated = await self.store.update_comment(annotation_id, comment_text)
        except AnnotationStoreError:
            logger.warning("Updating annotation failed", exc_info=True)
            self.notify("Could not update your note. Please retry.")
            return False
        if updated is None:
            return False
        await self._refresh_annotations()
        return True

    async def delete_note(self, annotation_id: UUID) -> bool:
        try:
            deleted = await self.store.delete(annotation_id)
        except AnnotationStoreError:
            logger.warning("Deleting annotation failed", exc_info=True)
            self.notify("Could not delete your note. Please retry.")
            return False
        if deleted:
            await self._refresh_annotations()
        return deleted
