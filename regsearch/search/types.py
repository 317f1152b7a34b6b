from __future__ import annotations

"""Core data types for queries and search results."""

from dataclasses import dataclass, field
from typing import Literal

QueryMode = Literal["exact-and", "prefix-or"]
DocumentType = Literal["article", "recital"]

EXACT_AND: QueryMode = "exact-and"
PREFIX_OR: QueryMode = "prefix-or"

ARTICLE: DocumentType = "article"
RECITAL: DocumentType = "recital"

# Primary text first; ranking prefers earlier entries when scores tie.
DOCUMENT_TYPES: tuple[DocumentType, ...] = (ARTICLE, RECITAL)


@dataclass(frozen=True)
class SearchQuery:
    """Normalized query ready for a backend."""
    raw: str
    tokens: tuple[str, ...] = ()
    mode: QueryMode = EXACT_AND

    @property
    def is_empty(self) -> bool:
        return not self.tokens


@dataclass(frozen=True)
class SearchResult:
    """Single ranked hit returned to callers."""
    collection: str
    document_number: str
    title: str
    snippet: str
    relevance: float
    document_type: DocumentType

    def to_dict(self) -> dict[str, object]:
        return {
            "collection": self.collection,
            "document_number": self.document_number,
            "title": self.title,
            "snippet": self.snippet,
            "relevance": self.relevance,
            "document_type": self.document_type,
        }


@dataclass(frozen=True)
class CollectionInfo:
    """Collection summary with per-type document counts."""
    id: str
    full_name: str
    celex_id: str
    effective_date: str | None = None
    article_count: int = 0
    recital_count: int = 0


@dataclass(frozen=True)
class Document:
    """Full stored text behind a search hit.

    ``references`` holds cross-referenced articles for an article and the
    related articles for a recital.
    """
    collection: str
    document_number: str
    document_type: DocumentType
    title: str
    text: str
    chapter: str | None = None
    references: list[str] = field(default_factory=list)

    @property
    def searchable_text(self) -> str:
        """Title and body as indexed for search."""
        if self.document_type == ARTICLE and self.title:
            return f"{self.title} {self.text}"
        return self.text

    def to_dict(self) -> dict[str, object]:
        return {
            "collection": self.collection,
            "document_number": self.document_number,
            "document_type": self.document_type,
            "title": self.title,
            "text": self.text,
            "chapter": self.chapter,
            "references": list(self.references),
        }


@dataclass(frozen=True)
class ArticleRecord:
    """Article as produced by ingestion."""
    number: str
    text: str
    title: str | None = None
    chapter: str | None = None
    cross_references: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecitalRecord:
    """Recital as produced by ingestion."""
    number: int
    text: str
    related_articles: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionRecord:
    """Collection with its documents, ready to be written to storage."""
    id: str
    full_name: str
    celex_id: str
    effective_date: str | None = None
    eur_lex_url: str | None = None
    articles: list[ArticleRecord] = field(default_factory=list)
    recitals: list[RecitalRecord] = field(default_factory=list)
