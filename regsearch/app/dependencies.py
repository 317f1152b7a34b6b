from __future__ import annotations

from functools import lru_cache
from typing import Any, Sequence

from regsearch.app.settings import settings
from regsearch.backends.base import BackendConfigError, SearchBackend
from regsearch.backends.postgres import PostgresSearchBackend
from regsearch.backends.sqlite import SQLiteSearchBackend
from regsearch.search.normalizer import QueryPolicy
from regsearch.search.service import SearchService
from regsearch.search.snippets import SnippetStyle
from regsearch.search.types import SearchResult


@lru_cache
def get_search_service() -> SearchService:
    return SearchService(
        backend=build_backend(),
        policy=build_query_policy(),
        default_limit=settings.default_limit,
        max_limit=settings.max_limit,
        tie_epsilon=settings.tie_epsilon,
        timeout=settings.backend_timeout,
    )


def reset_search_service_cache() -> None:
    if get_search_service.cache_info().currsize:
        get_search_service().close()
    get_search_service.cache_clear()


def search(
    query: str,
    collections: Sequence[str] | None = None,
    limit: Any = None,
) -> list[SearchResult]:
    """Search with the configured backend."""
    return get_search_service().search(query, collections=collections, limit=limit)


def build_query_policy() -> QueryPolicy:
    return QueryPolicy(
        stopwords=settings.stopwords,
        min_token_length=settings.min_token_length,
        mode_threshold=settings.mode_threshold,
    )


def build_snippet_style() -> SnippetStyle:
    return SnippetStyle(
        start_marker=settings.snippet_start,
        end_marker=settings.snippet_end,
        ellipsis=settings.snippet_ellipsis,
        max_words=settings.snippet_words,
        min_words=settings.snippet_min_words,
    )


def build_backend() -> SearchBackend:
    backend = settings.backend_name
    if backend == "sqlite":
        return SQLiteSearchBackend(
            path=settings.sqlite_database_path,
            snippet_style=build_snippet_style(),
            timeout=settings.backend_timeout,
        )
    if backend in {"postgres", "postgresql"}:
        return PostgresSearchBackend(
            uri=settings.database_uri or "",
            snippet_style=build_snippet_style(),
            text_config=settings.text_search_config,
            timeout=settings.backend_timeout,
            pool_size=settings.pool_size,
        )
    raise BackendConfigError(f"Unsupported search backend: {backend}")
