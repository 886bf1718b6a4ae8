"""
FastAPI application with assembled routers.

Initializes FastAPI app with the RAG and health routers and configures
uvicorn server.

Dependencies: fastapi, recall.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recall.api.deps.dependencies import get_service_cache
from recall.boundary.db.connection import create_schema
from recall.configs import get_settings
from recall.observability.logger import configure_logging
from recall.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware
from .routers import health_router, rag_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Creates the schema and warms the service cache on startup, releases
    HTTP and database resources on shutdown.
    """
    configure_logging(get_settings().log_level)
    logger = logging.getLogger("uvicorn")

    # Startup
    cache = get_service_cache()
    await create_schema(cache.engine)
    _ = cache.rag_service
    if not cache.rag_service.is_available():
        logger.warning("Embedding provider API key not configured; indexing will be skipped")
    logger.info("Service cache pre-warmed")

    yield

    # Shutdown
    await cache.aclose()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Conversation Recall API",
        description="Retrieval-augmented context from prior conversations",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(rag_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "recall.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
