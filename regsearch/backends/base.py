from __future__ import annotations

"""Backend protocol and errors shared by the storage engines."""

from typing import Protocol, Sequence

from regsearch.search.types import CollectionInfo, Document, DocumentType, SearchQuery, SearchResult


class SearchBackendError(RuntimeError):
    """Base class for search backend failures."""
    pass


class BackendUnavailableError(SearchBackendError):
    """Raised when the storage engine cannot be reached or times out."""
    pass


class BackendConfigError(SearchBackendError):
    """Raised when backend configuration is invalid."""
    pass


class SearchBackend(Protocol):
    """Protocol for full-text search engines."""
    name: str

    def execute_search(
        self,
        document_type: DocumentType,
        query: SearchQuery,
        collections: Sequence[str] | None,
        limit: int,
    ) -> list[SearchResult]:
        """Run one document-type search; scores are non-negative, higher is better."""
        raise NotImplementedError

    def build_match_expression(self, query: SearchQuery) -> str:
        """Translate a normalized query into engine-native syntax."""
        raise NotImplementedError

    def list_collections(self) -> list[CollectionInfo]:
        """Return collections with document counts."""
        raise NotImplementedError

    def get_document(
        self,
        collection: str,
        document_type: DocumentType,
        number: str,
    ) -> Document | None:
        """Return the full text of one article or recital."""
        raise NotImplementedError

    def health(self) -> dict[str, str | bool]:
        """Return backend health information."""
        raise NotImplementedError

    def stats(self) -> dict[str, int | str]:
        """Return document counts for the backend."""
        raise NotImplementedError

    def close(self) -> None:
        """Release pooled connections."""
        raise NotImplementedError
