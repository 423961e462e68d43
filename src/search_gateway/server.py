"""
FastAPI server exposing the search gateway.

``POST /api/search`` takes a ``SearchRequest`` and returns a
``SearchResponse``. Gateway errors become JSON bodies of the form
``{"error": ..., "retriable": ...}``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from .errors import ClientError, DependencyFailure, DependencyTimeout, SearchGatewayError
from .models import SearchRequest, SearchResponse
from .service import SearchService

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
ENV_LOG_LEVEL = "SEARCH_GATEWAY_LOG_LEVEL"


def configure_logging(level: str | None = None) -> None:
    resolved = (level or os.getenv(ENV_LOG_LEVEL) or "INFO").upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)


def _error_status(exc: SearchGatewayError) -> int:
    if isinstance(exc, ClientError):
        return 400
    if isinstance(exc, DependencyTimeout):
        return 504
    if isinstance(exc, DependencyFailure):
        return 502
    return 500


def create_app(service: SearchService) -> FastAPI:
    """Build the app around *service*; the app opens and closes it."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await asyncio.to_thread(service.open)
        try:
            yield
        finally:
            await asyncio.to_thread(service.close)

    app = FastAPI(
        title="Search Gateway",
        description="Keyword, semantic and hybrid search over Solr",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "collection": service.config.collection.name,
            "cache_size": service.cache_size,
        }

    @app.post("/api/search", response_model=SearchResponse)
    async def search(request: SearchRequest):
        """Run one search; a disconnected caller's result is simply dropped."""
        try:
            return await asyncio.to_thread(service.search, request)
        except SearchGatewayError as exc:
            return JSONResponse(
                {"error": str(exc), "retriable": exc.retriable},
                status_code=_error_status(exc),
            )
        except Exception as exc:
            logger.exception("Unexpected error while searching")
            return JSONResponse(
                {"error": str(exc), "retriable": False}, status_code=500
            )

    return app


def run_server(
    config_path: str | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
    log_level: str | None = None,
) -> None:
    """Run the FastAPI server."""
    import uvicorn

    configure_logging(log_level)
    app = create_app(SearchService.from_config(config_path))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
