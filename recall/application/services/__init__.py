"""Service orchestrators."""

from .indexing_service import IndexingPipeline
from .rag_service import RAGService, create_rag_service

__all__ = [
    "IndexingPipeline",
    "RAGService",
    "create_rag_service",
]
