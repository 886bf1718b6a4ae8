"""
CRUD operations for RAG persistence.

Exports CRUD classes and module-level singletons.
"""

from recall.boundary.db.CRUD.base_crud import BaseCRUD
from recall.boundary.db.CRUD.document_crud import RAGDocumentCRUD, rag_document_crud
from recall.boundary.db.CRUD.embedding_crud import RAGEmbeddingCRUD, rag_embedding_crud

__all__ = [
    "BaseCRUD",
    "RAGDocumentCRUD",
    "RAGEmbeddingCRUD",
    "rag_document_crud",
    "rag_embedding_crud",
]
