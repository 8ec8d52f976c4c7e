"""Tests for annotation CRUD against a temporary SQLite store."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from glossator.anchoring.fingerprint import AnchorFingerprint
from glossator.db import annotations as store
from glossator.db.annotations import (
    AnnotationStoreError,
    create_annotation,
    delete_annotation,
    get_annotation,
    list_annotations,
    update_annotation_comment,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from pytest import MonkeyPatch

_FINGERPRINT = AnchorFingerprint(
    selection_text="Repubblica democratica",
    prefix_context="L'Italia è una ",
    suffix_context=", fondata sul lavoro.",
    location_id="art_1",
)


class TestCreateAnnotation:
    @pytest.mark.asyncio
    async def test_persists_fingerprint(self, store_db: str) -> None:
        created = await create_annotation(
            "u1", "costituzione", _FINGERPRINT, "Key clause", selection_offset=22
        )

        fetched = await get_annotation(created.id)

        assert fetched is not None
        assert fetched.fingerprint == _FINGERPRINT
        assert fetched.comment_text == "Key clause"
        assert fetched.selection_offset == 22
        assert fetched.document_id == "costituzione"

    @pytest.mark.asyncio
    async def test_missing_id_returns_none(self, store_db: str) -> None:
        assert await get_annotation(uuid4()) is None


class TestListAnnotations:
    @pytest.mark.asyncio
    async def test_ordered_by_creation(self, store_db: str) -> None:
        first = await create_annotation("u1", "doc", _FINGERPRINT, "first")
        second = await create_annotation("u1", "doc", _FINGERPRINT, "second")

        notes = await list_annotations("u1", "doc")

        assert [n.id for n in notes] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_filters_by_user_and_document(self, store_db: str) -> None:
        await create_annotation("u1", "doc-a", _FINGERPRINT)
        await create_annotation("u1", "doc-b", _FINGERPRINT)
        await create_annotation("u2", "doc-a", _FINGERPRINT)

        assert len(await list_annotations("u1")) == 2
        only_a = await list_annotations("u1", "doc-a")
        assert [(n.user_id, n.document_id) for n in only_a] == [("u1", "doc-a")]
        assert await list_annotations("nobody") == []


class TestUpdateAnnotationComment:
    @pytest.mark.asyncio
    async def test_changes_only_comment(self, store_db: str) -> None:
        created = await create_annotation("u1", "doc", _FINGERPRINT, "draft")

        updated = await update_annotation_comment(created.id, "final")

        assert updated is not None
        assert updated.comment_text == "final"
        assert updated.fingerprint == _FINGERPRINT

    @pytest.mark.asyncio
    async def test_missing_returns_none(self, store_db: str) -> None:
        assert await update_annotation_comment(uuid4(), "x") is None


class TestDeleteAnnotation:
    @pytest.mark.asyncio
    async def test_deletes(self, store_db: str) -> None:
        created = await create_annotation("u1", "doc", _FINGERPRINT)

        assert await delete_annotation(created.id) is True
        assert await get_annotation(created.id) is None
        assert await delete_annotation(created.id) is False


class TestStoreErrors:
    @pytest.mark.asyncio
    async def test_database_failure_wrapped(self, monkeypatch: MonkeyPatch) -> None:
        @asynccontextmanager
        async def _broken_session() -> AsyncIterator[None]:
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))
            yield

        monkeypatch.setattr(store, "get_session", _broken_session)

        with pytest.raises(AnnotationStoreError, match="list annotations") as exc_info:
            await list_annotations("u1", "doc")

        assert exc_info.value.operation == "list annotations"
        assert isinstance(exc_info.value.__cause__, OperationalError)
