"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: recall.configs, recall.application, recall.boundary
System role: DI container for service injection
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from recall.application.services.rag_service import RAGService, create_rag_service
from recall.boundary.db.connection import get_async_engine, get_async_session_factory
from recall.configs import get_settings


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker | None = None
        self._rag_service: RAGService | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get cached database engine."""
        if self._engine is None:
            self._engine = get_async_engine()
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        """Get cached session factory bound to the cached engine."""
        if self._session_factory is None:
            self._session_factory = get_async_session_factory(self.engine)
        return self._session_factory

    @property
    def rag_service(self) -> RAGService:
        """Get cached RAG service."""
        if self._rag_service is None:
            self._rag_service = create_rag_service(get_settings(), self.session_factory)
        return self._rag_service

    async def aclose(self) -> None:
        """Close HTTP and database resources, then clear the cache."""
        if self._rag_service is not None:
            await self._rag_service.aclose()
        if self._engine is not None:
            await self._engine.dispose()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._engine = None
        self._session_factory = None
        self._rag_service = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_rag_service() -> RAGService:
    """
    Get RAG service instance.

    Returns:
        RAGService: Process-wide RAG service
    """
    return get_service_cache().rag_service


def get_db_engine() -> AsyncEngine:
    """
    Get database engine.

    Returns:
        AsyncEngine: Process-wide engine
    """
    return get_service_cache().engine
