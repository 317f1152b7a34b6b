from __future__ import annotations

"""Merge per-document-type result sets into one ranked list."""

import math
import re
from dataclasses import replace
from functools import cmp_to_key
from typing import Any, Iterable

from regsearch.search.types import DOCUMENT_TYPES, SearchResult

DEFAULT_LIMIT = 10
MAX_LIMIT = 1000
TIE_EPSILON = 0.01

_NUMBER_RE = re.compile(r"(\d+)")


def clamp_limit(
    value: Any,
    default: int = DEFAULT_LIMIT,
    maximum: int = MAX_LIMIT,
) -> int:
    """Coerce a requested limit into ``[0, maximum]``; bad values use the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        value = default
    elif not math.isfinite(value) or value < 0:
        value = default
    return min(int(math.floor(value)), maximum)


def merge_results(
    result_sets: Iterable[Iterable[SearchResult]],
    limit: int,
    epsilon: float = TIE_EPSILON,
) -> list[SearchResult]:
    """Combine, rank and truncate result sets.

    Scores closer than ``epsilon`` are treated as equal and primary text
    (articles) wins over annotations (recitals).
    """
    combined = [
        replace(result, relevance=abs(float(result.relevance)))
        for results in result_sets
        for result in results
    ]
    combined.sort(key=cmp_to_key(lambda a, b: _compare(a, b, epsilon)))
    return combined[: max(limit, 0)]


def _compare(a: SearchResult, b: SearchResult, epsilon: float) -> int:
    if abs(a.relevance - b.relevance) >= epsilon:
        return -1 if a.relevance > b.relevance else 1
    rank_a, rank_b = _type_rank(a), _type_rank(b)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    if a.relevance != b.relevance:
        return -1 if a.relevance > b.relevance else 1
    key_a, key_b = _identity_key(a), _identity_key(b)
    if key_a != key_b:
        return -1 if key_a < key_b else 1
    return 0


def _type_rank(result: SearchResult) -> int:
    try:
        return DOCUMENT_TYPES.index(result.document_type)
    except ValueError:
        return len(DOCUMENT_TYPES)


def _identity_key(result: SearchResult) -> tuple[str, list[tuple[int, str]]]:
    parts = [
        (int(part), "") if part.isdigit() else (0, part)
        for part in _NUMBER_RE.split(result.document_number)
        if part
    ]
    return result.collection, parts
