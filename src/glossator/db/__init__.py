"""Database module for Glossator.

Provides async SQLModel operations for the annotation store.
"""

from __future__ import annotations

from glossator.db.annotations import (
    AnnotationStoreError,
    create_annotation,
    delete_annotation,
    get_annotation,
    list_annotations,
    update_annotation_comment,
)
from glossator.db.engine import close_db, get_engine, get_session, init_db
from glossator.db.models import Annotation

__all__ = [
    "Annotation",
    "AnnotationStoreError",
    "close_db",
    "create_annotation",
    "delete_annotation",
    "get_annotation",
    "get_engine",
    "get_session",
    "init_db",
    "list_annotations",
    "update_annotation_comment",
]
