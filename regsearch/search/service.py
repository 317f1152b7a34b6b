from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Sequence

from regsearch.backends.base import BackendUnavailableError, SearchBackend
from regsearch.search.merger import DEFAULT_LIMIT, MAX_LIMIT, TIE_EPSILON, clamp_limit, merge_results
from regsearch.search.normalizer import QueryPolicy, normalize
from regsearch.search.types import DOCUMENT_TYPES, DocumentType, SearchQuery, SearchResult

logger = logging.getLogger(__name__)


@dataclass
class SearchService:
    backend: SearchBackend
    policy: QueryPolicy = field(default_factory=QueryPolicy)
    document_types: tuple[DocumentType, ...] = DOCUMENT_TYPES
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT
    tie_epsilon: float = TIE_EPSILON
    timeout: float | None = 10.0
    max_workers: int = 8

    def __post_init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="regsearch",
        )

    def search(
        self,
        query: str,
        collections: Sequence[str] | None = None,
        limit: Any = None,
    ) -> list[SearchResult]:
        """Search every document type and return one ranked list."""
        limit = clamp_limit(
            self.default_limit if limit is None else limit,
            default=self.default_limit,
            maximum=self.max_limit,
        )
        normalized = normalize(query, self.policy)
        if normalized.is_empty or limit == 0:
            return []
        collection_filter = [value for value in collections or [] if value] or None

        start = time.monotonic()
        result_sets = self._fan_out(normalized, collection_filter, limit)
        results = merge_results(result_sets, limit, epsilon=self.tie_epsilon)
        logger.info(
            "search_complete",
            extra={
                "backend": self.backend.name,
                "mode": normalized.mode,
                "token_count": len(normalized.tokens),
                "results": len(results),
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
            },
        )
        return results

    def _fan_out(
        self,
        query: SearchQuery,
        collections: list[str] | None,
        limit: int,
    ) -> list[list[SearchResult]]:
        futures: list[tuple[DocumentType, Future]] = [
            (
                document_type,
                self._executor.submit(
                    self.backend.execute_search, document_type, query, collections, limit
                ),
            )
            for document_type in self.document_types
        ]
        _, not_done = wait([future for _, future in futures], timeout=self.timeout)
        if not_done:
            for _, future in futures:
                future.cancel()
            pending = [document_type for document_type, future in futures if future in not_done]
            logger.error(
                "backend_unavailable",
                extra={
                    "backend": self.backend.name,
                    "document_types": pending,
                    "detail": "timeout",
                },
            )
            raise BackendUnavailableError(
                f"{self.backend.name} search timed out after {self.timeout}s"
            )
        return [future.result() for _, future in futures]

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.backend.close()
