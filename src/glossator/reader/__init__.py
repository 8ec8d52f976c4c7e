"""Reader layer: note editor state, reader context and document sessions."""

from glossator.reader.context import ReaderContext, ReaderContextStore
from glossator.reader.editor import EditorGeometry, EditorState, NoteEditor
from glossator.reader.sections import SectionTracker
from glossator.reader.session import (
    AnnotationStore,
    Notice,
    ReaderSession,
    SqlAnnotationStore,
)

__all__ = [
    "AnnotationStore",
    "EditorGeometry",
    "EditorState",
    "Notice",
    "NoteEditor",
    "ReaderContext",
    "ReaderContextStore",
    "ReaderSession",
    "SectionTracker",
    "SqlAnnotationStore",
]
