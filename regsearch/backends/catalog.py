from __future__ import annotations

"""Dialect-neutral catalog queries used by every backend."""

import json

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from regsearch.search.types import ARTICLE, RECITAL, CollectionInfo, Document, DocumentType
from regsearch.storage.schema import articles, recitals, regulations

MAX_RECITAL_NUMBER = 10000


def fetch_collections(conn: Connection) -> list[CollectionInfo]:
    """Return all collections with article and recital counts."""
    article_counts = (
        select(articles.c.regulation, func.count().label("article_count"))
        .group_by(articles.c.regulation)
        .subquery()
    )
    recital_counts = (
        select(recitals.c.regulation, func.count().label("recital_count"))
        .group_by(recitals.c.regulation)
        .subquery()
    )
    statement = (
        select(
            regulations.c.id,
            regulations.c.full_name,
            regulations.c.celex_id,
            regulations.c.effective_date,
            func.coalesce(article_counts.c.article_count, 0).label("article_count"),
            func.coalesce(recital_counts.c.recital_count, 0).label("recital_count"),
        )
        .select_from(
            regulations.outerjoin(
                article_counts, article_counts.c.regulation == regulations.c.id
            ).outerjoin(recital_counts, recital_counts.c.regulation == regulations.c.id)
        )
        .order_by(regulations.c.id)
    )
    return [
        CollectionInfo(
            id=row.id,
            full_name=row.full_name,
            celex_id=row.celex_id,
            effective_date=row.effective_date,
            article_count=int(row.article_count),
            recital_count=int(row.recital_count),
        )
        for row in conn.execute(statement)
    ]


def fetch_counts(conn: Connection) -> dict[str, int]:
    """Return row counts for the searchable tables."""
    return {
        "collection_count": int(conn.execute(select(func.count()).select_from(regulations)).scalar_one()),
        "article_count": int(conn.execute(select(func.count()).select_from(articles)).scalar_one()),
        "recital_count": int(conn.execute(select(func.count()).select_from(recitals)).scalar_one()),
    }


def fetch_document(
    conn: Connection,
    collection: str,
    document_type: DocumentType,
    number: str,
) -> Document | None:
    """Return one article or recital, or None when it is not stored."""
    if document_type == ARTICLE:
        row = conn.execute(
            select(articles).where(
                articles.c.regulation == collection,
                articles.c.article_number == number,
            )
        ).first()
        if row is None:
            return None
        return Document(
            collection=row.regulation,
            document_number=row.article_number,
            document_type=ARTICLE,
            title=row.title or "",
            text=row.text,
            chapter=row.chapter,
            references=_load_list(row.cross_references),
        )
    if document_type == RECITAL:
        recital_number = _recital_number(number)
        if recital_number is None:
            return None
        row = conn.execute(
            select(recitals).where(
                recitals.c.regulation == collection,
                recitals.c.recital_number == recital_number,
            )
        ).first()
        if row is None:
            return None
        return Document(
            collection=row.regulation,
            document_number=str(row.recital_number),
            document_type=RECITAL,
            title=f"Recital {row.recital_number}",
            text=row.text,
            references=_load_list(row.related_articles),
        )
    raise ValueError(f"Unknown document type: {document_type}")


def _recital_number(value: str) -> int | None:
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    if number < 1 or number > MAX_RECITAL_NUMBER:
        return None
    return number


def _load_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except json.JSONDecodeError:
        return []
    if not isinstance(values, list):
        return []
    return [str(value) for value in values]
