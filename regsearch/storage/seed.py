from __future__ import annotations

"""Load structured collection JSON into a search database."""

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from sqlalchemy import delete, insert
from sqlalchemy.engine import Engine

from regsearch.search.types import ArticleRecord, CollectionRecord, RecitalRecord
from regsearch.storage.schema import articles, recitals, regulations

logger = logging.getLogger(__name__)


class SeedError(RuntimeError):
    """Raised when seed data is malformed."""
    pass


def parse_collection(payload: dict[str, Any]) -> CollectionRecord:
    """Validate a collection payload and convert it to records."""
    if not isinstance(payload, dict):
        raise SeedError("Collection payload must be an object")
    for key in ("id", "full_name", "celex_id"):
        if not isinstance(payload.get(key), str) or not payload[key].strip():
            raise SeedError(f"Collection field '{key}' is required")

    article_records: list[ArticleRecord] = []
    for item in payload.get("articles") or []:
        number = str(item.get("number", "")).strip()
        text = item.get("text")
        if not number or not isinstance(text, str) or not text.strip():
            raise SeedError(f"Article in {payload['id']} requires a number and text")
        article_records.append(
            ArticleRecord(
                number=number,
                text=text,
                title=item.get("title") or None,
                chapter=item.get("chapter") or None,
                cross_references=[str(ref) for ref in item.get("cross_references") or []],
            )
        )

    recital_records: list[RecitalRecord] = []
    for item in payload.get("recitals") or []:
        text = item.get("text")
        try:
            number = int(item.get("number"))
        except (TypeError, ValueError) as exc:
            raise SeedError(f"Recital in {payload['id']} has an invalid number") from exc
        if not isinstance(text, str) or not text.strip():
            raise SeedError(f"Recital {number} in {payload['id']} requires text")
        recital_records.append(
            RecitalRecord(
                number=number,
                text=text,
                related_articles=[str(ref) for ref in item.get("related_articles") or []],
            )
        )

    return CollectionRecord(
        id=payload["id"].strip(),
        full_name=payload["full_name"].strip(),
        celex_id=payload["celex_id"].strip(),
        effective_date=payload.get("effective_date") or None,
        eur_lex_url=payload.get("eur_lex_url") or None,
        articles=article_records,
        recitals=recital_records,
    )


def load_seed_directory(directory: Path) -> list[CollectionRecord]:
    """Read every ``*.json`` collection file in a directory."""
    records: list[CollectionRecord] = []
    for path in sorted(directory.glob("*.json")):
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SeedError(f"Invalid JSON in {path.name}: {exc}") from exc
        records.append(parse_collection(payload))
    return records


def write_collections(engine: Engine, records: Iterable[CollectionRecord]) -> dict[str, int]:
    """Replace each collection and its documents wholesale."""
    counts = {"collections": 0, "articles": 0, "recitals": 0}
    with engine.begin() as conn:
        for record in records:
            conn.execute(delete(articles).where(articles.c.regulation == record.id))
            conn.execute(delete(recitals).where(recitals.c.regulation == record.id))
            conn.execute(delete(regulations).where(regulations.c.id == record.id))
            conn.execute(
                insert(regulations).values(
                    id=record.id,
                    full_name=record.full_name,
                    celex_id=record.celex_id,
                    effective_date=record.effective_date,
                    eur_lex_url=record.eur_lex_url,
                )
            )
            if record.articles:
                conn.execute(
                    insert(articles),
                    [
                        {
                            "regulation": record.id,
                            "article_number": article.number,
                            "title": article.title,
                            "text": article.text,
                            "chapter": article.chapter,
                            "cross_references": _dump_list(article.cross_references),
                        }
                        for article in record.articles
                    ],
                )
            if record.recitals:
                conn.execute(
                    insert(recitals),
                    [
                        {
                            "regulation": record.id,
                            "recital_number": recital.number,
                            "text": recital.text,
                            "related_articles": _dump_list(recital.related_articles),
                        }
                        for recital in record.recitals
                    ],
                )
            counts["collections"] += 1
            counts["articles"] += len(record.articles)
            counts["recitals"] += len(record.recitals)
            logger.info(
                "collection_written",
                extra={
                    "collection": record.id,
                    "articles": len(record.articles),
                    "recitals": len(record.recitals),
                },
            )
    return counts


def _dump_list(values: list[str]) -> str | None:
    if not values:
        return None
    return json.dumps(values, ensure_ascii=True)
