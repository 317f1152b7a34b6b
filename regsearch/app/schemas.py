from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str = ""
    collections: list[str] | None = None
    # Any value is accepted; the search service clamps it.
    limit: int | float | str | None = None


class SearchResultItem(BaseModel):
    collection: str
    document_number: str
    title: str
    snippet: str
    relevance: float
    document_type: Literal["article", "recital"]


class SearchResponse(BaseModel):
    query: str
    count: int
    results: list[SearchResultItem] = Field(default_factory=list)
    request_id: str


class CollectionItem(BaseModel):
    id: str
    full_name: str
    celex_id: str
    effective_date: str | None = None
    article_count: int
    recital_count: int


class CollectionsResponse(BaseModel):
    collections: list[CollectionItem]


class HealthResponse(BaseModel):
    status: str
    backend: str
    ok: bool
    detail: str | None = None


class StatsResponse(BaseModel):
    backend: str
    collection_count: int
    article_count: int
    recital_count: int


class DocumentResponse(BaseModel):
    collection: str
    document_number: str
    document_type: Literal["article", "recital"]
    title: str
    text: str
    chapter: str | None = None
    references: list[str] = Field(default_factory=list)
