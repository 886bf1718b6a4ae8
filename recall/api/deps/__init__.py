"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    ServiceCache,
    get_db_engine,
    get_rag_service,
    get_service_cache,
)

__all__ = [
    "ServiceCache",
    "get_db_engine",
    "get_rag_service",
    "get_service_cache",
]
