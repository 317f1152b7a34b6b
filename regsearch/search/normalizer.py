from __future__ import annotations

"""Query cleanup, tokenization and query-mode selection."""

import re
from dataclasses import dataclass, field

from regsearch.app.settings import DEFAULT_STOPWORDS
from regsearch.search.types import EXACT_AND, PREFIX_OR, SearchQuery

_QUOTES_RE = re.compile(r"['\"]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class QueryPolicy:
    """Tunable normalization policy.

    ``mode_threshold`` is the precision/recall boundary: queries with at most
    that many significant tokens run in exact-and mode, longer queries run in
    prefix-or mode and rely on engine ranking to surface multi-term matches.
    """
    stopwords: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_STOPWORDS))
    min_token_length: int = 2
    mode_threshold: int = 3


def tokenize(raw: str, policy: QueryPolicy | None = None) -> list[str]:
    """Split raw query text into significant tokens."""
    policy = policy or QueryPolicy()
    cleaned = _QUOTES_RE.sub("", raw or "").replace("-", " ")
    tokens: list[str] = []
    for word in _WHITESPACE_RE.split(cleaned):
        if len(word) <= policy.min_token_length:
            continue
        if word.lower() in policy.stopwords:
            continue
        tokens.append(word)
    return tokens


def normalize(raw: str, policy: QueryPolicy | None = None) -> SearchQuery:
    """Normalize a raw query; an empty token list means no results."""
    policy = policy or QueryPolicy()
    tokens = tokenize(raw, policy)
    if not tokens:
        return SearchQuery(raw=raw or "")
    mode = EXACT_AND if len(tokens) <= policy.mode_threshold else PREFIX_OR
    return SearchQuery(raw=raw, tokens=tuple(tokens), mode=mode)
