from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlalchemy import create_engine

from regsearch.app.dependencies import build_backend
from regsearch.backends.base import BackendConfigError
from regsearch.backends.sqlite import SQLiteSearchBackend
from regsearch.storage.schema import create_schema
from regsearch.storage.seed import SeedError, load_seed_directory, parse_collection, write_collections

SEED_DIR = Path(__file__).resolve().parents[2] / "data" / "seed"


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"id": "GDPR", "full_name": "", "celex_id": "32016R0679"},
        {
            "id": "GDPR",
            "full_name": "General Data Protection Regulation",
            "celex_id": "32016R0679",
            "articles": [{"number": "", "text": "Body"}],
        },
        {
            "id": "GDPR",
            "full_name": "General Data Protection Regulation",
            "celex_id": "32016R0679",
            "recitals": [{"number": "first", "text": "Body"}],
        },
    ],
)
def test_malformed_payloads_are_rejected(payload) -> None:
    with pytest.raises(SeedError):
        parse_collection(payload)


def test_bundled_seed_files_load() -> None:
    records = load_seed_directory(SEED_DIR)

    assert [record.id for record in records] == ["GDPR", "NIS2"]
    assert all(record.articles for record in records)


def test_invalid_json_is_a_seed_error(tmp_path) -> None:
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(SeedError):
        load_seed_directory(tmp_path)


def test_rewriting_a_collection_replaces_it(tmp_path, corpus_records) -> None:
    path = tmp_path / "rewrite.db"
    engine = create_engine(f"sqlite:///{path}")
    create_schema(engine)
    write_collections(engine, corpus_records)
    counts = write_collections(engine, corpus_records[:1])
    engine.dispose()

    backend = SQLiteSearchBackend(path=str(path))
    try:
        stats = backend.stats()
    finally:
        backend.close()

    assert counts["collections"] == 1
    assert stats["article_count"] == 9
    assert stats["recital_count"] == 4


def test_seed_directory_defaults(tmp_path) -> None:
    seed_dir = tmp_path / "seed"
    seed_dir.mkdir()
    (seed_dir / "custom.json").write_text(
        json.dumps(
            {
                "id": "AIA",
                "full_name": "Artificial Intelligence Act",
                "celex_id": "32024R1689",
                "articles": [{"number": "5", "title": "Prohibited practices", "text": "Placing on the market"}],
                "recitals": [{"number": 27, "text": "Trustworthy systems"}],
            }
        ),
        encoding="utf-8",
    )

    records = load_seed_directory(seed_dir)

    assert records[0].articles[0].title == "Prohibited practices"
    assert records[0].recitals[0].number == 27
    assert records[0].effective_date is None


def test_unsupported_backend_is_config_error(monkeypatch) -> None:
    monkeypatch.setenv("REGSEARCH_BACKEND", "elasticsearch")

    with pytest.raises(BackendConfigError):
        build_backend()


def test_postgres_backend_requires_uri(monkeypatch) -> None:
    monkeypatch.setenv("REGSEARCH_BACKEND", "postgres")
    monkeypatch.setenv("REGSEARCH_DATABASE_URI", "")

    with pytest.raises(BackendConfigError):
        build_backend()
