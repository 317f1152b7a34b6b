from __future__ import annotations

"""PostgreSQL tsvector/tsquery search backend."""

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from regsearch.backends.base import BackendConfigError, BackendUnavailableError
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
from regsearch.storage.schema import article_document_sql, validate_text_config

logger = logging.getLogger(__name__)

_SYNTAX_ERROR_SQLSTATE = "42601"


def _quote_lexeme(token: str) -> str:
    escaped = token.replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"


def build_tsquery(query: SearchQuery) -> str:
    """Translate a normalized query into ``to_tsquery`` syntax.

    Each lexeme is quoted so operator characters inside a term are parsed
    as text rather than as tsquery syntax.
    """
    if query.is_empty:
        return ""
    quoted = [_quote_lexeme(token) for token in query.tokens]
    if query.mode == EXACT_AND:
        return " & ".join(quoted)
    return " | ".join(f"{term}:*" for term in quoted)


@dataclass
class PostgresSearchBackend:
    """Search backend over PostgreSQL full-text search."""
    uri: str
    snippet_style: SnippetStyle = field(default_factory=SnippetStyle)
    text_config: str = "english"
    timeout: float = 10.0
    pool_size: int = 10
    engine: Engine | None = None
    name: str = "postgres"

    def __post_init__(self) -> None:
        if not self.uri and self.engine is None:
            raise BackendConfigError("REGSEARCH_DATABASE_URI is required for the postgres backend")
        try:
            self.text_config = validate_text_config(self.text_config)
        except ValueError as exc:
            raise BackendConfigError(str(exc)) from exc
        if self.engine is None:
            timeout_ms = max(int(self.timeout * 1000), 1)
            self.engine = create_engine(
                self.uri,
                pool_size=self.pool_size,
                pool_pre_ping=True,
                pool_timeout=self.timeout,
                connect_args={
                    "connect_timeout": max(int(self.timeout), 1),
                    "options": f"-c statement_timeout={timeout_ms}",
                },
            )

    def build_match_expression(self, query: SearchQuery) -> str:
        return build_tsquery(query)

    def execute_search(
        self,
        document_type: DocumentType,
        query: SearchQuery,
        collections: Sequence[str] | None,
        limit: int,
    ) -> list[SearchResult]:
        """Run a tsquery search for one document type."""
        tsquery = self.build_match_expression(query)
        if not tsquery or limit <= 0:
            return []
        statement, params = self._statement(document_type, tsquery, collections, limit)
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
            raise BackendUnavailableError(f"PostgreSQL search failed: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"PostgreSQL search failed: {exc}") from exc
        return [
            SearchResult(
                collection=row["collection"],
                document_number=str(row["document_number"]),
                title=row["title"] or "",
                snippet=row["snippet"] or "",
                relevance=abs(float(row["relevance"] or 0.0)),
                document_type=document_type,
            )
            for row in rows
        ]

    def _statement(
        self,
        document_type: DocumentType,
        tsquery: str,
        collections: Sequence[str] | None,
        limit: int,
    ):
        config = self.text_config
        params: dict[str, Any] = {
            "tsquery": tsquery,
            "headline_options": self.snippet_style.headline_options(),
            "limit": limit,
        }
        if document_type == ARTICLE:
            document = f"to_tsvector('{config}', {article_document_sql('a')})"
            sql = f"""
                SELECT
                  a.regulation AS collection,
                  a.article_number AS document_number,
                  COALESCE(a.title, '') AS title,
                  ts_headline('{config}', a.text, q.query, :headline_options) AS snippet,
                  ts_rank({document}, q.query) AS relevance
                FROM articles a, to_tsquery('{config}', :tsquery) AS q(query)
                WHERE {document} @@ q.query
                {{collection_clause}}
                ORDER BY relevance DESC, a.regulation,
                  COALESCE(CAST(substring(a.article_number from '^[0-9]+') AS INTEGER), 0),
                  a.article_number
                LIMIT :limit
            """
            column = "a.regulation"
        elif document_type == RECITAL:
            document = f"to_tsvector('{config}', r.text)"
            sql = f"""
                SELECT
                  r.regulation AS collection,
                  CAST(r.recital_number AS TEXT) AS document_number,
                  'Recital ' || r.recital_number AS title,
                  ts_headline('{config}', r.text, q.query, :headline_options) AS snippet,
                  ts_rank({document}, q.query) AS relevance
                FROM recitals r, to_tsquery('{config}', :tsquery) AS q(query)
                WHERE {document} @@ q.query
                {{collection_clause}}
                ORDER BY relevance DESC, r.regulation, r.recital_number
                LIMIT :limit
            """
            column = "r.regulation"
        else:
            raise ValueError(f"Unknown document type: {document_type}")

        collection_clause = ""
        if collections:
            collection_clause = f"AND {column} IN :collections"
            params["collections"] = list(collections)
        statement = text(sql.replace("{collection_clause}", collection_clause))
        if collections:
            statement = statement.bindparams(bindparam("collections", expanding=True))
        return statement, params

    def list_collections(self) -> list[CollectionInfo]:
        try:
            with self.engine.connect() as conn:
                return fetch_collections(conn)
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"PostgreSQL catalog query failed: {exc}") from exc

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
            raise BackendUnavailableError(f"PostgreSQL document lookup failed: {exc}") from exc

    def stats(self) -> dict[str, int | str]:
        try:
            with self.engine.connect() as conn:
                counts = fetch_counts(conn)
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"PostgreSQL stats query failed: {exc}") from exc
        return {"backend": self.name, "text_config": self.text_config, **counts}

    def health(self) -> dict[str, str | bool]:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            return {"backend": self.name, "ok": False, "detail": type(exc).__name__}
        return {"backend": self.name, "ok": True}

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


def _is_syntax_error(exc: DBAPIError) -> bool:
    if getattr(exc.orig, "sqlstate", None) == _SYNTAX_ERROR_SQLSTATE:
        return True
    if getattr(exc.orig, "pgcode", None) == _SYNTAX_ERROR_SQLSTATE:
        return True
    return "tsquery" in str(exc.orig).lower()
