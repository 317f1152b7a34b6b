from __future__ import annotations

"""Storage schema shared with the ingestion pipeline."""

import re

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

regulations = Table(
    "regulations",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("full_name", Text, nullable=False),
    Column("celex_id", String(64), nullable=False),
    Column("effective_date", String(32), nullable=True),
    Column("last_amended", String(32), nullable=True),
    Column("eur_lex_url", Text, nullable=True),
)

articles = Table(
    "articles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("regulation", String(64), ForeignKey("regulations.id"), nullable=False),
    Column("article_number", String(32), nullable=False),
    Column("title", Text, nullable=True),
    Column("text", Text, nullable=False),
    Column("chapter", String(32), nullable=True),
    Column("cross_references", Text, nullable=True),
    UniqueConstraint("regulation", "article_number", name="uq_articles_regulation_number"),
)

recitals = Table(
    "recitals",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("regulation", String(64), ForeignKey("regulations.id"), nullable=False),
    Column("recital_number", Integer, nullable=False),
    Column("text", Text, nullable=False),
    Column("related_articles", Text, nullable=True),
    UniqueConstraint("regulation", "recital_number", name="uq_recitals_regulation_number"),
)

_SQLITE_FTS_DDL = (
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS articles_fts USING fts5(
      regulation UNINDEXED, article_number UNINDEXED, title, text,
      content='articles', content_rowid='id'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS articles_ai AFTER INSERT ON articles BEGIN
      INSERT INTO articles_fts(rowid, regulation, article_number, title, text)
      VALUES (new.id, new.regulation, new.article_number, new.title, new.text);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS articles_ad AFTER DELETE ON articles BEGIN
      INSERT INTO articles_fts(articles_fts, rowid, regulation, article_number, title, text)
      VALUES ('delete', old.id, old.regulation, old.article_number, old.title, old.text);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS articles_au AFTER UPDATE ON articles BEGIN
      INSERT INTO articles_fts(articles_fts, rowid, regulation, article_number, title, text)
      VALUES ('delete', old.id, old.regulation, old.article_number, old.title, old.text);
      INSERT INTO articles_fts(rowid, regulation, article_number, title, text)
      VALUES (new.id, new.regulation, new.article_number, new.title, new.text);
    END
    """,
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS recitals_fts USING fts5(
      regulation UNINDEXED, recital_number UNINDEXED, text,
      content='recitals', content_rowid='id'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS recitals_ai AFTER INSERT ON recitals BEGIN
      INSERT INTO recitals_fts(rowid, regulation, recital_number, text)
      VALUES (new.id, new.regulation, new.recital_number, new.text);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS recitals_ad AFTER DELETE ON recitals BEGIN
      INSERT INTO recitals_fts(recitals_fts, rowid, regulation, recital_number, text)
      VALUES ('delete', old.id, old.regulation, old.recital_number, old.text);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS recitals_au AFTER UPDATE ON recitals BEGIN
      INSERT INTO recitals_fts(recitals_fts, rowid, regulation, recital_number, text)
      VALUES ('delete', old.id, old.regulation, old.recital_number, old.text);
      INSERT INTO recitals_fts(rowid, regulation, recital_number, text)
      VALUES (new.id, new.regulation, new.recital_number, new.text);
    END
    """,
)

_CONFIG_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_text_config(value: str) -> str:
    """Validate a PostgreSQL text search configuration name."""
    if not value or not _CONFIG_RE.match(value):
        raise ValueError(f"Invalid text search configuration: {value!r}")
    return value


def article_document_sql(alias: str = "a") -> str:
    """Searchable text expression for articles (title + body)."""
    return f"COALESCE({alias}.title, '') || ' ' || {alias}.text"


def postgres_index_ddl(text_config: str) -> tuple[str, ...]:
    config = validate_text_config(text_config)
    return (
        "CREATE INDEX IF NOT EXISTS articles_search_idx ON articles "
        f"USING gin(to_tsvector('{config}', {article_document_sql('articles')}))",
        "CREATE INDEX IF NOT EXISTS recitals_search_idx ON recitals "
        f"USING gin(to_tsvector('{config}', recitals.text))",
        "CREATE INDEX IF NOT EXISTS articles_regulation_idx ON articles(regulation)",
        "CREATE INDEX IF NOT EXISTS recitals_regulation_idx ON recitals(regulation)",
    )


def create_schema(engine: Engine, text_config: str = "english") -> None:
    """Create tables and the dialect's full-text index structures."""
    metadata.create_all(engine)
    if engine.dialect.name == "sqlite":
        statements = _SQLITE_FTS_DDL
    elif engine.dialect.name == "postgresql":
        statements = postgres_index_ddl(text_config)
    else:
        raise ValueError(f"Unsupported dialect for full-text search: {engine.dialect.name}")
    with engine.begin() as conn:
        for statement in statements:
            conn.exec_driver_sql(statement)
