"""
Health check API endpoints.

Routes: GET /health, GET /health/db, GET /health/embeddings

Dependencies: recall.api.deps, sqlalchemy
System role: Health check HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from recall.api.deps import get_db_engine, get_rag_service
from recall.application.services.rag_service import RAGService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/db", response_model=HealthResponse)
async def health_check_db(engine: AsyncEngine = Depends(get_db_engine)) -> HealthResponse:
    """
    Database health check.

    Raises:
        HTTPException(503): Database unreachable
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"{__name__}:health_check_db - {type(e).__name__}: {e}")
        raise HTTPException(status_code=503, detail="Database connection failed")
    return HealthResponse(status="healthy", message="Database connection OK")


@router.get("/embeddings", response_model=HealthResponse)
async def health_check_embeddings(
    rag_service: RAGService = Depends(get_rag_service),
) -> HealthResponse:
    """
    Embedding provider configuration check.

    Does not call the provider; only reports whether a credential is set.

    Raises:
        HTTPException(503): Provider credential not configured
    """
    if not rag_service.is_available():
        raise HTTPException(status_code=503, detail="Embedding provider API key not configured")
    return HealthResponse(status="healthy", message="Embedding provider configured")
