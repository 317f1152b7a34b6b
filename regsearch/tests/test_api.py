from __future__ import annotations

import httpx
import pytest

from regsearch.app.dependencies import reset_search_service_cache
from regsearch.app.main import app

pytestmark = pytest.mark.anyio


@pytest.fixture
def seeded_env(sqlite_db, monkeypatch):
    monkeypatch.setenv("REGSEARCH_BACKEND", "sqlite")
    monkeypatch.setenv("REGSEARCH_SQLITE_PATH", str(sqlite_db))
    reset_search_service_cache()
    yield sqlite_db
    reset_search_service_cache()


@pytest.fixture
def missing_env(tmp_path, monkeypatch):
    monkeypatch.setenv("REGSEARCH_BACKEND", "sqlite")
    monkeypatch.setenv("REGSEARCH_SQLITE_PATH", str(tmp_path / "absent.db"))
    reset_search_service_cache()
    yield
    reset_search_service_cache()


def get_client() -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


async def test_health_endpoint(seeded_env) -> None:
    async with get_client() as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["backend"] == "sqlite"


async def test_search_returns_ranked_results(seeded_env) -> None:
    async with get_client() as client:
        response = await client.post(
            "/search",
            json={"query": "incident reporting", "collections": ["NIS2"], "limit": 5},
            headers={"x-request-id": "req-123"},
        )
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-123"
    payload = response.json()
    assert payload["request_id"] == "req-123"
    assert payload["count"] == len(payload["results"])
    assert payload["results"][0]["collection"] == "NIS2"
    assert set(payload["results"][0]) == {
        "collection",
        "document_number",
        "title",
        "snippet",
        "relevance",
        "document_type",
    }
    assert ">>>" in payload["results"][0]["snippet"]


async def test_blank_query_is_not_an_error(seeded_env) -> None:
    async with get_client() as client:
        response = await client.post("/search", json={"query": "   "})
    assert response.status_code == 200
    assert response.json()["results"] == []


async def test_invalid_limit_uses_default(seeded_env) -> None:
    async with get_client() as client:
        default = await client.post("/search", json={"query": "data"})
        invalid = await client.post("/search", json={"query": "data", "limit": "lots"})
        negative = await client.post("/search", json={"query": "data", "limit": -4})
    assert invalid.status_code == 200
    assert negative.status_code == 200
    assert invalid.json()["results"] == default.json()["results"]
    assert negative.json()["results"] == default.json()["results"]


async def test_collections_endpoint(seeded_env) -> None:
    async with get_client() as client:
        response = await client.get("/collections")
    assert response.status_code == 200
    ids = [item["id"] for item in response.json()["collections"]]
    assert ids == ["DORA", "GDPR", "NIS2"]


async def test_stats_endpoint(seeded_env) -> None:
    async with get_client() as client:
        response = await client.get("/stats")
    assert response.status_code == 200
    assert response.json()["article_count"] == 9


async def test_unavailable_backend_returns_503(missing_env) -> None:
    async with get_client() as client:
        search_response = await client.post("/search", json={"query": "security"})
        health_response = await client.get("/health")
    assert search_response.status_code == 503
    assert health_response.status_code == 503
    assert health_response.json()["ok"] is False


async def test_blank_query_succeeds_even_when_backend_is_down(missing_env) -> None:
    async with get_client() as client:
        response = await client.post("/search", json={"query": ""})
    assert response.status_code == 200
    assert response.json()["count"] == 0


async def test_metrics_endpoint(seeded_env) -> None:
    async with get_client() as client:
        await client.post("/search", json={"query": "security"})
        response = await client.get("/metrics")
    assert response.status_code == 200
    assert "regsearch_search_duration_seconds" in response.text


async def test_document_endpoint_returns_article(seeded_env) -> None:
    async with get_client() as client:
        response = await client.get("/collections/NIS2/article/23")
    assert response.status_code == 200
    payload = response.json()
    assert payload["title"] == "Reporting obligations"
    assert payload["document_type"] == "article"
    assert "early warning" in payload["text"]


async def test_document_endpoint_returns_recital(seeded_env) -> None:
    async with get_client() as client:
        response = await client.get("/collections/DORA/recital/63")
    assert response.status_code == 200
    assert response.json()["title"] == "Recital 63"


async def test_document_endpoint_not_found(seeded_env) -> None:
    async with get_client() as client:
        missing = await client.get("/collections/GDPR/article/999")
        bad_type = await client.get("/collections/GDPR/annex/1")
    assert missing.status_code == 404
    assert bad_type.status_code == 404


async def test_document_endpoint_unavailable_backend(missing_env) -> None:
    async with get_client() as client:
        response = await client.get("/collections/GDPR/article/5")
    assert response.status_code == 503
