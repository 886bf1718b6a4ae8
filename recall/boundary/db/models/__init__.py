"""ORM models for RAG documents and embeddings."""

from recall.boundary.db.models.document_model import RAGDocumentModel
from recall.boundary.db.models.embedding_model import RAGEmbeddingModel

__all__ = ["RAGDocumentModel", "RAGEmbeddingModel"]
