from __future__ import annotations

"""Snippet contract shared by every search backend."""

import re
from dataclasses import dataclass

# FTS5 caps the snippet() token argument at 64.
MAX_SNIPPET_WORDS = 64


@dataclass(frozen=True)
class SnippetStyle:
    """Match markers and window size rendered by each engine."""
    start_marker: str = ">>>"
    end_marker: str = "<<<"
    ellipsis: str = "..."
    max_words: int = 32
    min_words: int = 16

    def __post_init__(self) -> None:
        if not self.start_marker or not self.end_marker:
            raise ValueError("Snippet markers must be non-empty")
        if not 1 <= self.max_words <= MAX_SNIPPET_WORDS:
            raise ValueError(f"Snippet window must be between 1 and {MAX_SNIPPET_WORDS} words")
        if not 1 <= self.min_words <= self.max_words:
            raise ValueError("Snippet minimum window must be between 1 and the maximum window")

    def headline_options(self) -> str:
        """Render options for PostgreSQL ts_headline."""
        for value in (self.start_marker, self.end_marker, self.ellipsis):
            if "," in value or "=" in value:
                raise ValueError("ts_headline markers cannot contain ',' or '='")
        return (
            f'StartSel="{self.start_marker}", StopSel="{self.end_marker}", '
            f"MaxWords={self.max_words}, MinWords={self.min_words}, "
            f'FragmentDelimiter="{self.ellipsis}"'
        )

    def highlighted_terms(self, snippet: str) -> list[str]:
        """Return the terms wrapped in match markers, in order."""
        pattern = re.compile(
            re.escape(self.start_marker) + r"(.*?)" + re.escape(self.end_marker),
            re.DOTALL,
        )
        return [match.group(1) for match in pattern.finditer(snippet)]
