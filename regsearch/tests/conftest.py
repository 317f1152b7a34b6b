from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("REGSEARCH_BACKEND", "sqlite")
os.environ.setdefault("REGSEARCH_METRICS_ENABLED", "true")
os.environ.pop("REGSEARCH_STOPWORDS", None)

from sqlalchemy import create_engine  # noqa: E402

from regsearch.backends.sqlite import SQLiteSearchBackend  # noqa: E402
from regsearch.search.service import SearchService  # noqa: E402
from regsearch.search.types import SearchResult  # noqa: E402
from regsearch.storage.schema import create_schema  # noqa: E402
from regsearch.storage.seed import parse_collection, write_collections  # noqa: E402

CORPUS = [
    {
        "id": "GDPR",
        "full_name": "General Data Protection Regulation",
        "celex_id": "32016R0679",
        "effective_date": "2018-05-25",
        "articles": [
            {
                "number": "1",
                "title": "Subject-matter and objectives",
                "text": "This Regulation lays down rules relating to the protection of natural "
                "persons with regard to the processing of personal data and rules relating "
                "to the free movement of personal data.",
            },
            {
                "number": "4",
                "title": "Definitions",
                "text": "'personal data' means any information relating to an identified or "
                "identifiable natural person ('data subject'); an identifiable natural "
                "person is one who can be identified, directly or indirectly.",
            },
            {
                "number": "5",
                "title": "Principles relating to processing of personal data",
                "text": "Personal data shall be processed lawfully, fairly and in a transparent "
                "manner in relation to the data subject.",
            },
            {
                "number": "32",
                "title": "Security of processing",
                "text": "The controller and the processor shall implement appropriate technical "
                "and organisational measures to ensure a level of security appropriate to "
                "the risk, including encryption of personal data.",
            },
            {
                "number": "33",
                "title": "Notification of a personal data breach",
                "text": "In the case of a personal data breach, the controller shall without "
                "undue delay notify the supervisory authority.",
            },
        ],
        "recitals": [
            {
                "number": 39,
                "text": "Personal data should be processed in a manner that ensures appropriate "
                "security and confidentiality of the personal data.",
            },
            {
                "number": 83,
                "text": "In order to maintain security, the controller should evaluate the risks "
                "inherent in the processing and implement measures such as encryption.",
            },
        ],
    },
    {
        "id": "NIS2",
        "full_name": "Network and Information Security Directive 2",
        "celex_id": "32022L2555",
        "articles": [
            {
                "number": "21",
                "title": "Cybersecurity risk-management measures",
                "text": "Essential and important entities shall take appropriate technical and "
                "organisational measures to manage the risks posed to the security of "
                "network and information systems.",
            },
            {
                "number": "23",
                "title": "Reporting obligations",
                "text": "Essential and important entities shall notify the competent authority "
                "of any significant incident. Incident reporting shall include an early "
                "warning within 24 hours.",
            },
        ],
        "recitals": [
            {
                "number": 101,
                "text": "Incident reporting obligations should enable competent authorities to "
                "respond to incidents affecting the security of network systems.",
            },
        ],
    },
    {
        "id": "DORA",
        "full_name": "Digital Operational Resilience Act",
        "celex_id": "32022R2554",
        "articles": [
            {
                "number": "19",
                "title": "Reporting of major ICT-related incidents",
                "text": "Financial entities shall report major ICT-related incidents to the "
                "relevant competent authority using harmonised templates.",
            },
            {
                "number": "28",
                "title": "General principles",
                "text": "Financial entities shall manage ICT third-party risk as an integral "
                "component of ICT risk within their risk management framework.",
            },
        ],
        "recitals": [
            {
                "number": 63,
                "text": "Third-party providers of ICT services should be monitored for "
                "concentration risk.",
            },
        ],
    },
]


@pytest.fixture
def corpus_records():
    return [parse_collection(payload) for payload in CORPUS]


@pytest.fixture
def sqlite_db(tmp_path, corpus_records) -> Path:
    db_path = tmp_path / "regulations.db"
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        create_schema(engine)
        write_collections(engine, corpus_records)
    finally:
        engine.dispose()
    return db_path


@pytest.fixture
def sqlite_backend(sqlite_db):
    backend = SQLiteSearchBackend(path=str(sqlite_db))
    yield backend
    backend.close()


@pytest.fixture
def service(sqlite_backend):
    search_service = SearchService(backend=sqlite_backend)
    yield search_service
    search_service.close()


@pytest.fixture
def document_text(sqlite_backend):
    """Return the stored title and body for a search result."""

    def _lookup(result: SearchResult) -> str:
        document = sqlite_backend.get_document(
            result.collection, result.document_type, result.document_number
        )
        assert document is not None
        return document.searchable_text

    return _lookup
