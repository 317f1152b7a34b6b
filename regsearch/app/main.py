from __future__ import annotations

"""FastAPI entrypoint exposing the regulation search service."""

import logging
import time
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from regsearch.app.dependencies import get_search_service, reset_search_service_cache
from regsearch.app.metrics import (
    metrics_middleware,
    metrics_response,
    observe_search,
    record_backend_error,
)
from regsearch.app.schemas import (
    CollectionItem,
    CollectionsResponse,
    DocumentResponse,
    HealthResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    StatsResponse,
)
from regsearch.app.settings import settings
from regsearch.backends.base import BackendUnavailableError
from regsearch.search.types import DOCUMENT_TYPES

logger = logging.getLogger(__name__)

app = FastAPI(title="Regulation Search", version="0.1.0")


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


@app.on_event("startup")
async def build_search_service() -> None:
    """Build the configured service so misconfiguration fails at startup."""
    service = get_search_service()
    logger.info("search_service_ready", extra={"backend": service.backend.name})


@app.on_event("shutdown")
async def close_search_service() -> None:
    reset_search_service_cache()


def _service_unavailable(request_id: str, backend: str, exc: Exception) -> HTTPException:
    """Log a backend failure and build the 503 response."""
    record_backend_error(backend)
    logger.error(
        "backend_unavailable",
        extra={"request_id": request_id, "backend": backend, "detail": type(exc).__name__},
    )
    return HTTPException(status_code=503, detail="Search backend unavailable")


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health", response_model=HealthResponse)
async def health():
    """Report backend connectivity."""
    service = get_search_service()
    report = await run_in_threadpool(service.backend.health)
    ok = bool(report.get("ok"))
    payload = HealthResponse(
        status="ok" if ok else "unavailable",
        backend=str(report.get("backend", service.backend.name)),
        ok=ok,
        detail=report.get("detail"),
    )
    if not ok:
        return JSONResponse(status_code=503, content=payload.model_dump())
    return payload


@app.post("/search", response_model=SearchResponse)
async def search(request: SearchRequest, http_request: Request) -> SearchResponse:
    """Full-text search across articles and recitals."""
    request_id = http_request.state.request_id
    service = get_search_service()
    start = time.monotonic()
    try:
        results = await run_in_threadpool(
            service.search,
            request.query,
            request.collections,
            request.limit,
        )
    except BackendUnavailableError as exc:
        raise _service_unavailable(request_id, service.backend.name, exc) from exc
    observe_search(service.backend.name, time.monotonic() - start, len(results))
    logger.info(
        "search_request",
        extra={
            "request_id": request_id,
            "query_length": len(request.query),
            "collections": request.collections or [],
            "results": len(results),
        },
    )
    return SearchResponse(
        query=request.query,
        count=len(results),
        results=[SearchResultItem(**result.to_dict()) for result in results],
        request_id=request_id,
    )


@app.get("/collections", response_model=CollectionsResponse)
async def collections(http_request: Request) -> CollectionsResponse:
    """List collections with document counts."""
    service = get_search_service()
    try:
        infos = await run_in_threadpool(service.backend.list_collections)
    except BackendUnavailableError as exc:
        raise _service_unavailable(
            http_request.state.request_id, service.backend.name, exc
        ) from exc
    return CollectionsResponse(collections=[CollectionItem(**info.__dict__) for info in infos])


@app.get(
    "/collections/{collection_id}/{document_type}/{number}",
    response_model=DocumentResponse,
)
async def get_document(
    collection_id: str,
    document_type: str,
    number: str,
    http_request: Request,
) -> DocumentResponse:
    """Return the full text of one article or recital."""
    if document_type not in DOCUMENT_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown document type: {document_type}")
    service = get_search_service()
    try:
        document = await run_in_threadpool(
            service.backend.get_document, collection_id, document_type, number
        )
    except BackendUnavailableError as exc:
        raise _service_unavailable(
            http_request.state.request_id, service.backend.name, exc
        ) from exc
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return DocumentResponse(**document.to_dict())


@app.get("/stats", response_model=StatsResponse)
async def stats(http_request: Request) -> StatsResponse:
    """Return document counts for the configured backend."""
    service = get_search_service()
    try:
        payload = await run_in_threadpool(service.backend.stats)
    except BackendUnavailableError as exc:
        raise _service_unavailable(
            http_request.state.request_id, service.backend.name, exc
        ) from exc
    return StatsResponse(
        backend=str(payload["backend"]),
        collection_count=int(payload["collection_count"]),
        article_count=int(payload["article_count"]),
        recital_count=int(payload["recital_count"]),
    )
