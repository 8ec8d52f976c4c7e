"""HTTP client for the document content provider.

The provider serves pre-formatted document bodies:

    GET {base_url}/api/document?id=...&date=YYYY-MM-DD&format=markdown[&vigenza=...]

The body is the response text; the display title comes from the
``X-Document-Title`` header.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

import httpx

from glossator.config import get_settings

if TYPE_CHECKING:
    from datetime import date
    from types import TracebackType

logger = logging.getLogger(__name__)

DOCUMENT_PATH = "/api/document"
TITLE_HEADER = "X-Document-Title"


class DocumentFetchError(Exception):
    """Raised when a document cannot be fetched from the provider."""

    def __init__(self, document_id: str, detail: str) -> None:
        self.document_id = document_id
        super().__init__(f"Failed to fetch document {document_id}: {detail}")


class DocumentNotFoundError(DocumentFetchError):
    """Raised when the provider has no such document (HTTP 404)."""

    def __init__(self, document_id: str) -> None:
        super().__init__(document_id, "not found")


@dataclass(frozen=True, slots=True)
class FetchedDocument:
    """A formatted document body as served for one validity date."""

    document_id: str
    as_of: date
    body: str
    title: str | None = None


class DocumentProviderClient:
    """Async client for the document content provider.

    Usable as an async context manager; an injected ``httpx.AsyncClient``
    is left open on exit.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        provider = get_settings().provider
        self.base_url = (base_url or provider.base_url).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else provider.timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(
        self,
        document_id: str,
        as_of: date,
        vigenza: date | None = None,
    ) -> FetchedDocument:
        """Fetch a document's formatted body.

        Args:
            document_id: Provider identifier of the document.
            as_of: Publication date selecting the document version.
            vigenza: Optional validity date for the text in force.

        Returns:
            The fetched document.

        Raises:
            DocumentNotFoundError: If the provider answers 404.
            DocumentFetchError: On any other transport or HTTP failure.
        """
        params = {
            "id": document_id,
            "date": as_of.isoformat(),
            "format": "markdown",
        }
        if vigenza is not None:
            params["vigenza"] = vigenza.isoformat()

        try:
            response = await self._client.get(
                f"{self.base_url}{DOCUMENT_PATH}", params=params
            )
        except httpx.HTTPError as e:
            raise DocumentFetchError(document_id, str(e)) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            raise DocumentNotFoundError(document_id)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DocumentFetchError(
                document_id, f"provider returned {response.status_code}"
            ) from e

        title = response.headers.get(TITLE_HEADER) or None
        logger.info(
            "Fetched document %s (%s): %d chars", document_id, as_of, len(response.text)
        )
        return FetchedDocument(
            document_id=document_id,
            as_of=as_of,
            body=response.text,
            title=title,
        )
