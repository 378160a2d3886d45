"""
HTTP API - thin FastAPI wrapper over the core services

Endpoints:
    GET    /health
    GET    /api/knowledge-bases
    POST   /api/knowledge-bases                      {"name", "path"?}
    GET    /api/knowledge-bases/{name}/stats
    PUT    /api/knowledge-bases/{name}               {"newName"}
    DELETE /api/knowledge-bases/{name}
    DELETE /api/knowledge-bases/{name}/chunk-sets/{timestamp}
    POST   /api/search                               {"query", "knowledgeBaseName"?, "language"?, "maxResults"?}
    GET    /api/search/cache
    DELETE /api/search/cache

Errors are returned as {"error": {"code", "message", "details"?}} with
400 VALIDATION_ERROR, 404 NOT_FOUND, 409 CONFLICT or 500 INTERNAL_ERROR.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common import __version__
from common.exceptions import (
    KnowledgeBaseExistsError,
    KnowledgeBaseMemoryError,
    ScanError,
    format_error_chain,
    is_not_found,
)

from .schemas import IngestRequest, RenameRequest, SearchRequest
from .tools import KnowledgeBaseTools
from .wiring import Services, build_services

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    body: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content={"error": body})


def _status_for(error: KnowledgeBaseMemoryError) -> tuple[int, str]:
    if is_not_found(error):
        return 404, "NOT_FOUND"
    if isinstance(error, KnowledgeBaseExistsError):
        return 409, "CONFLICT"
    if isinstance(error, ScanError):
        return 400, "VALIDATION_ERROR"
    return 500, "INTERNAL_ERROR"


def create_app(services: Optional[Services] = None) -> FastAPI:
    svc = services or build_services()
    tools = KnowledgeBaseTools(svc.search, svc.knowledge_bases)

    app = FastAPI(
        title="Knowledge-Base Memory",
        version=__version__,
        description="Ingest, search and manage local knowledge bases.",
    )
    app.state.services = svc

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        return error_response(400, "VALIDATION_ERROR", "Invalid request", details)

    @app.exception_handler(KnowledgeBaseMemoryError)
    async def domain_error(request: Request, exc: KnowledgeBaseMemoryError) -> JSONResponse:
        status_code, code = _status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed:\n%s", request.method, request.url.path, format_error_chain(exc))
        return error_response(status_code, code, exc.message, exc.details)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error in %s %s", request.method, request.url.path)
        return error_response(500, "INTERNAL_ERROR", str(exc) or type(exc).__name__)

    @app.get("/health")
    def health() -> dict:
        try:
            store_ok = svc.store.heartbeat()
        except KnowledgeBaseMemoryError as e:
            logger.warning("Store heartbeat failed: %s", e)
            store_ok = False
        check = getattr(svc.provider, "health_check", None)
        embedder = check() if check else {"healthy": True, "model": svc.provider.model}
        healthy = store_ok and bool(embedder.get("healthy"))
        return {
            "status": "ok" if healthy else "degraded",
            "version": __version__,
            "store": store_ok,
            "embedder": embedder,
        }

    @app.get("/api/knowledge-bases")
    def list_knowledge_bases() -> dict:
        return tools.list_knowledge_bases()

    @app.post("/api/knowledge-bases", status_code=201)
    def create_knowledge_base(request: IngestRequest) -> dict:
        if request.path is None:
            return svc.knowledge_bases.create(request.name).to_api()
        stats = svc.pipeline.ingest(request.path, request.name)
        svc.search.clear_cache()
        return stats.to_api()

    @app.get("/api/knowledge-bases/{name}/stats")
    def knowledge_base_stats(name: str) -> dict:
        return tools.get_knowledge_base_stats(name)

    @app.put("/api/knowledge-bases/{name}")
    def rename_knowledge_base(name: str, request: RenameRequest) -> dict:
        return svc.knowledge_bases.rename(name, request.new_name).to_api()

    @app.delete("/api/knowledge-bases/{name}")
    def delete_knowledge_base(name: str) -> dict:
        return svc.knowledge_bases.delete(name).to_api()

    @app.delete("/api/knowledge-bases/{name}/chunk-sets/{timestamp}")
    def delete_chunk_set(name: str, timestamp: str) -> dict:
        return svc.knowledge_bases.delete_chunk_set(name, timestamp).to_api()

    @app.post("/api/search")
    def search(request: SearchRequest) -> dict:
        return tools.run_search(request)

    @app.get("/api/search/cache")
    def search_cache_stats() -> dict:
        return svc.search.cache_stats()

    @app.delete("/api/search/cache")
    def clear_search_cache() -> dict:
        svc.search.clear_cache()
        return {"cleared": True}

    return app
