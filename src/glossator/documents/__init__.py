"""Document content provider access."""

from glossator.documents.provider import (
    DocumentFetchError,
    DocumentNotFoundError,
    DocumentProviderClient,
    FetchedDocument,
)

__all__ = [
    "DocumentFetchError",
    "DocumentNotFoundError",
    "DocumentProviderClient",
    "FetchedDocument",
]
