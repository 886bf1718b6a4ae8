"""
Database boundary layer: ORM models, CRUD operations, FTS5 index and store.

Exports:
  - Base, UUIDMixin, CreatedAtMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Async connection management
  - create_schema(), drop_schema(): Table, FTS5 and trigger lifecycle
  - RAGDocumentModel, RAGEmbeddingModel: ORM entities
  - rag_document_crud, rag_embedding_crud: CRUD operation singletons
  - RAGStore: Session-scoped store used by search and indexing
  - encode_vector(), decode_vector(): Embedding blob codec

Dependencies: sqlalchemy, aiosqlite, recall.configs
System role: Database adapter providing persistent storage for retrievable
chunks and their embeddings.
"""

from recall.boundary.db.base import Base, CreatedAtMixin, UUIDMixin
from recall.boundary.db.models import RAGDocumentModel, RAGEmbeddingModel
from recall.boundary.db.fts import FTS_TABLE, build_match_query
from recall.boundary.db.connection import (
    create_schema,
    drop_schema,
    get_async_engine,
    get_async_session_factory,
)
from recall.boundary.db.CRUD import (
    BaseCRUD,
    RAGDocumentCRUD,
    RAGEmbeddingCRUD,
    rag_document_crud,
    rag_embedding_crud,
)
from recall.boundary.db.rag_store import RAGStore
from recall.boundary.db.vector_codec import decode_vector, encode_vector

__all__ = [
    # Base classes
    "Base",
    "CreatedAtMixin",
    "UUIDMixin",
    # Connection
    "create_schema",
    "drop_schema",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "RAGDocumentModel",
    "RAGEmbeddingModel",
    # Full-text index
    "FTS_TABLE",
    "build_match_query",
    # CRUD classes
    "BaseCRUD",
    "RAGDocumentCRUD",
    "RAGEmbeddingCRUD",
    # CRUD singletons
    "rag_document_crud",
    "rag_embedding_crud",
    # Store
    "RAGStore",
    # Codec
    "decode_vector",
    "encode_vector",
]
