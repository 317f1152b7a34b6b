from __future__ import annotations

import os
from dataclasses import dataclass

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional in minimal setups
    load_dotenv = None

if load_dotenv is not None:
    load_dotenv()

DEFAULT_STOPWORDS = (
    "a",
    "an",
    "the",
    "and",
    "or",
    "but",
    "in",
    "on",
    "at",
    "to",
    "for",
    "of",
    "with",
    "by",
)


@dataclass(frozen=True)
class Settings:
    backend: str = os.getenv("REGSEARCH_BACKEND", "sqlite")
    sqlite_path: str = os.getenv("REGSEARCH_SQLITE_PATH", "data/regulations.db")
    database_uri_raw: str | None = os.getenv("REGSEARCH_DATABASE_URI")
    pool_size: int = int(os.getenv("REGSEARCH_POOL_SIZE", "10"))
    backend_timeout: float = float(os.getenv("REGSEARCH_BACKEND_TIMEOUT", "10"))
    text_search_config: str = os.getenv("REGSEARCH_TEXT_CONFIG", "english")
    default_limit: int = int(os.getenv("REGSEARCH_DEFAULT_LIMIT", "10"))
    max_limit: int = int(os.getenv("REGSEARCH_MAX_LIMIT", "1000"))
    # Queries with at most this many tokens require every term; longer ones
    # fall back to prefix OR so exploratory queries still return rows.
    mode_threshold: int = int(os.getenv("REGSEARCH_MODE_THRESHOLD", "3"))
    min_token_length: int = int(os.getenv("REGSEARCH_MIN_TOKEN_LENGTH", "2"))
    stopwords_raw: str = os.getenv("REGSEARCH_STOPWORDS", "")
    tie_epsilon: float = float(os.getenv("REGSEARCH_TIE_EPSILON", "0.01"))
    snippet_start: str = os.getenv("REGSEARCH_SNIPPET_START", ">>>")
    snippet_end: str = os.getenv("REGSEARCH_SNIPPET_END", "<<<")
    snippet_ellipsis: str = os.getenv("REGSEARCH_SNIPPET_ELLIPSIS", "...")
    snippet_words: int = int(os.getenv("REGSEARCH_SNIPPET_WORDS", "32"))
    snippet_min_words: int = int(os.getenv("REGSEARCH_SNIPPET_MIN_WORDS", "16"))
    log_level: str = os.getenv("REGSEARCH_LOG_LEVEL", "INFO")
    metrics_enabled: bool = os.getenv("REGSEARCH_METRICS_ENABLED", "true").lower() in {
        "1",
        "true",
        "yes",
    }

    @property
    def backend_name(self) -> str:
        return os.getenv("REGSEARCH_BACKEND", self.backend).strip().lower()

    @property
    def sqlite_database_path(self) -> str:
        return os.getenv("REGSEARCH_SQLITE_PATH", self.sqlite_path)

    @property
    def database_uri(self) -> str | None:
        return os.getenv("REGSEARCH_DATABASE_URI", self.database_uri_raw or "") or None

    @property
    def stopwords(self) -> frozenset[str]:
        raw = os.getenv("REGSEARCH_STOPWORDS", self.stopwords_raw).strip()
        if not raw:
            return frozenset(DEFAULT_STOPWORDS)
        return frozenset(value.strip().lower() for value in raw.split(",") if value.strip())


settings = Settings()
