from __future__ import annotations

"""SQLite FTS5 search backend."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from regsearch.backends.base import BackendUnavailableError
from regsearch.backends.catalog import fetch_collections, fetch_counts, fetch_document
from regsearch.search.snippets import SnippetStyle
from regsearch.search.types import (
    ARTICLE,
    EXACT_AND,
    RECITAL,
    CollectionInfo,
    Document,
    DocumentType,
    SearchQuery,
    SearchResult,
)

logger = logging.getLogger(__name__)

# Messages produced by the FTS5 query parser for malformed MATCH expressions.
_SYNTAX_ERROR_MARKERS = (
    "fts5:",
    "unterminated string",
    "no such column",
    "malformed match",
    "unknown special query",
)


@dataclass(frozen=True)
class _FtsTable:
    fts_table: str
    number_expr: str
    title_expr: str
    body_column: int
    order_expr: str


_TABLES: dict[str, _FtsTable] = {
    ARTICLE: _FtsTable(
        fts_table="articles_fts",
        number_expr="articles_fts.article_number",
        title_expr="COALESCE(articles_fts.title, '')",
        body_column=3,
        order_expr="CAST(articles_fts.article_number AS INTEGER), articles_fts.article_number",
    ),
    RECITAL: _FtsTable(
        fts_table="recitals_fts",
        number_expr="CAST(recitals_fts.recital_number AS TEXT)",
        title_expr="'Recital ' || recitals_fts.recital_number",
        body_column=2,
        order_expr="CAST(recitals_fts.recital_number AS INTEGER)",
    ),
}


def build_fts5_query(query: SearchQuery) -> str:
    """Translate a normalized query into an FTS5 MATCH expression.

    Terms are double-quoted so FTS5 operators and column filters typed by
    users are searched as plain terms. Space is an implicit AND in FTS5.
    """
    if query.is_empty:
        return ""
    quoted = [f'"{token}"' for token in query.tokens]
    if query.mode == EXACT_AND:
        return " ".join(quoted)
    return " OR ".join(f"{term}*" for term in quoted)


@dataclass
class SQLiteSearchBackend:
    """Search backend over an SQLite database with FTS5 indexes."""
    path: str
    snippet_style: SnippetStyle = field(default_factory=SnippetStyle)
    timeout: float = 10.0
    read_only: bool = True
    engine: Engine | None = None
    name: str = "sqlite"

    def __post_init__(self) -> None:
        if self.engine is None:
            self.engine = create_engine(self._url(), connect_args={"timeout": self.timeout})

    def _url(self) -> str:
        resolved = Path(self.path).expanduser().resolve()
        if self.read_only:
            return f"sqlite:///file:{resolved.as_posix()}?mode=ro&uri=true"
        return f"sqlite:///{resolved.as_posix()}"

    def build_match_expression(self, query: SearchQuery) -> str:
        return build_fts5_query(query)

    def execute_search(
        self,
        document_type: DocumentType,
        query: SearchQuery,
        collections: Sequence[str] | None,
        limit: int,
    ) -> list[SearchResult]:
        """Run an FTS5 search for one document type."""
        match = self.build_match_expression(query)
        if not match or limit <= 0:
            return []
        table = _TABLES[document_type]
        statement, params = self._statement(table, match, collections, limit)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(statement, params).mappings().all()
        except DBAPIError as exc:
            if _is_syntax_error(exc):
                logger.warning(
                    "search_query_rejected",
                    extra={
                        "backend": self.name,
                        "document_type": document_type,
                        "detail": str(exc.orig),
                    },
                )
                return []
            raise BackendUnavailableError(f"SQLite search failed: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"SQLite search failed: {exc}") from exc
        return [
            SearchResult(
                collection=row["collection"],
                document_number=str(row["document_number"]),
                title=row["title"] or "",
                snippet=row["snippet"] or "",
                # bm25() is negative; more negative is more relevant.
                relevance=abs(float(row["relevance"] or 0.0)),
                document_type=document_type,
            )
            for row in rows
        ]

    def _statement(
        self,
        table: _FtsTable,
        match: str,
        collections: Sequence[str] | None,
        limit: int,
    ):
        style = self.snippet_style
        collection_clause = ""
        params: dict[str, object] = {
            "match": match,
            "start": style.start_marker,
            "end": style.end_marker,
            "ellipsis": style.ellipsis,
            "words": style.max_words,
            "limit": limit,
        }
        if collections:
            collection_clause = f"AND {table.fts_table}.regulation IN :collections"
            params["collections"] = list(collections)
        sql = f"""
            SELECT
              {table.fts_table}.regulation AS collection,
              {table.number_expr} AS document_number,
              {table.title_expr} AS title,
              snippet({table.fts_table}, {table.body_column}, :start, :end, :ellipsis, :words) AS snippet,
              bm25({table.fts_table}) AS relevance
            FROM {table.fts_table}
            WHERE {table.fts_table} MATCH :match
            {collection_clause}
            ORDER BY bm25({table.fts_table}), {table.fts_table}.regulation, {table.order_expr}
            LIMIT :limit
        """
        statement = text(sql)
        if collections:
            statement = statement.bindparams(bindparam("collections", expanding=True))
        return statement, params

    def list_collections(self) -> list[CollectionInfo]:
        try:
            with self.engine.connect() as conn:
                return fetch_collections(conn)
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"SQLite catalog query failed: {exc}") from exc

    def get_document(
        self,
        collection: str,
        document_type: DocumentType,
        number: str,
    ) -> Document | None:
        try:
            with self.engine.connect() as conn:
                return fetch_document(conn, collection, document_type, number)
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"SQLite document lookup failed: {exc}") from exc

    def stats(self) -> dict[str, int | str]:
        try:
            with self.engine.connect() as conn:
                counts = fetch_counts(conn)
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"SQLite stats query failed: {exc}") from exc
        return {"backend": self.name, "path": self.path, **counts}

    def health(self) -> dict[str, str | bool]:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1 FROM articles_fts LIMIT 1"))
        except SQLAlchemyError as exc:
            return {"backend": self.name, "ok": False, "detail": type(exc).__name__}
        return {"backend": self.name, "ok": True}

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


def _is_syntax_error(exc: DBAPIError) -> bool:
    message = str(exc.orig).lower()
    return any(marker in message for marker in _SYNTAX_ERROR_MARKERS)
