"""
Document and vector store.

Facade over the RAG CRUD layer that owns session scoping: each operation
opens its own session from a shared factory, writes run in a single
transaction, and every SQLAlchemy failure surfaces as StorageError.

Dependencies: sqlalchemy, recall.boundary.db.CRUD, recall.core
System role: Persistence port for indexing and search
"""

import logging
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recall.boundary.db.CRUD import rag_document_crud, rag_embedding_crud
from recall.boundary.db.fts import build_match_query
from recall.boundary.db.vector_codec import decode_vector, encode_vector
from recall.core.exceptions import StorageError, ValidationError
from recall.models.document import EmbeddedDocument, RAGDocument, SourceType
from recall.observability.observer import NullObserver, PipelineEvent, PipelineObserver

DEFAULT_KEYWORD_LIMIT = 50


class RAGStore:
    """
    Async store for RAG documents and their embeddings.

    Documents are immutable once written; the only mutations after insert
    are source-scoped deletion and a full wipe.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        dimension: int,
        observer: PipelineObserver | None = None,
    ) -> None:
        """
        Initialize store.

        Args:
            session_factory: Factory producing AsyncSession instances
            dimension: Dimension every stored vector must have
            observer: Sink for pipeline events
        """
        self._session_factory = session_factory
        self.dimension = dimension
        self._observer = observer or NullObserver()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Read-only session; SQLAlchemy errors become StorageError."""
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            raise StorageError(f"Database {operation} failed: {e}", operation=operation) from e

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Session inside a transaction committed on exit, rolled back on error."""
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            raise StorageError(f"Database {operation} failed: {e}", operation=operation) from e

    async def insert_with_embedding(
        self,
        document: RAGDocument,
        vector: Sequence[float],
        model_id: str,
    ) -> RAGDocument:
        """
        Persist a document and its embedding atomically.

        Args:
            document: Document to store
            vector: Embedding of document.chunk_text
            model_id: Embedding model identifier

        Returns:
            RAGDocument: The stored document

        Raises:
            ValidationError: Vector dimension differs from the store's
            StorageError: Database failure (nothing is written)
        """
        if len(vector) != self.dimension:
            raise ValidationError(
                "Embedding dimension mismatch",
                field="dimension",
                details={"expected": self.dimension, "received": len(vector)},
            )

        async with self._transaction("insert") as session:
            await rag_document_crud.create(
                session,
                id=document.id,
                source_type=document.source_type.value,
                source_id=document.source_id,
                chunk_text=document.chunk_text,
                chunk_index=document.chunk_index,
                doc_metadata=dict(document.metadata),
                created_at=document.created_at,
            )
            await rag_embedding_crud.create(
                session,
                document_id=document.id,
                embedding=encode_vector(vector),
                embedding_model=model_id,
                dimension=len(vector),
            )

        self._observer.emit(
            PipelineEvent(
                stage="store",
                name="document_stored",
                message=f"Stored {document.source_type.value} chunk {document.chunk_index}",
                level=logging.DEBUG,
                fields={"document_id": document.id, "source_id": document.source_id},
            )
        )
        return document

    async def load_all(
        self,
        source_type: SourceType | None = None,
        source_id: str | None = None,
    ) -> list[EmbeddedDocument]:
        """
        Load documents with decoded vectors.

        Args:
            source_type: Optional source category filter
            source_id: Optional source identifier filter

        Returns:
            list[EmbeddedDocument]: Documents in creation order
        """
        async with self._session("load") as session:
            rows = await rag_document_crud.load_with_embeddings(
                session,
                source_type=source_type.value if source_type else None,
                source_id=source_id,
            )
            return [
                EmbeddedDocument(document=model.to_domain(), vector=decode_vector(blob))
                for model, blob in rows
            ]

    async def load_embeddings(self, document_ids: Iterable[str]) -> dict[str, list[float]]:
        """
        Load vectors for the given documents in one query.

        Args:
            document_ids: Document identifiers

        Returns:
            dict[str, list[float]]: Vector per document id
        """
        async with self._session("load") as session:
            blobs = await rag_embedding_crud.get_blobs_for_documents(session, document_ids)
        return {document_id: decode_vector(blob) for document_id, blob in blobs.items()}

    async def load_embeddings_for_source(
        self,
        source_type: SourceType,
        source_id: str,
    ) -> list[list[float]]:
        """
        Load the vectors of every chunk of one source.

        Args:
            source_type: Source category
            source_id: Source identifier

        Returns:
            list[list[float]]: Vectors in chunk order
        """
        async with self._session("load") as session:
            blobs = await rag_embedding_crud.get_blobs_for_source(
                session, source_type.value, source_id
            )
        return [decode_vector(blob) for blob in blobs]

    async def full_text_search(
        self,
        query: str,
        limit: int = DEFAULT_KEYWORD_LIMIT,
        source_type: SourceType | None = None,
        source_id: str | None = None,
    ) -> list[RAGDocument]:
        """
        Keyword search ordered by bm25 rank.

        Args:
            query: Free text; each word is matched as a separate term
            limit: Maximum number of documents
            source_type: Optional source category filter
            source_id: Optional source identifier filter

        Returns:
            list[RAGDocument]: Best match first; empty if the query has no words
        """
        match_query = build_match_query(query)
        if match_query is None:
            return []

        async with self._session("search") as session:
            models = await rag_document_crud.full_text_search(
                session,
                match_query,
                limit=limit,
                source_type=source_type.value if source_type else None,
                source_id=source_id,
            )
            return [model.to_domain() for model in models]

    async def delete_by_source(self, source_type: SourceType, source_id: str) -> int:
        """
        Delete every chunk of a source together with its embeddings.

        Args:
            source_type: Source category
            source_id: Source identifier

        Returns:
            int: Number of documents deleted
        """
        async with self._transaction("delete") as session:
            await rag_embedding_crud.delete_for_source(session, source_type.value, source_id)
            deleted = await rag_document_crud.delete_by_source(
                session, source_type.value, source_id
            )

        self._observer.emit(
            PipelineEvent(
                stage="store",
                name="source_deleted",
                message=f"Deleted {deleted} {source_type.value} documents",
                fields={"source_id": source_id},
            )
        )
        return deleted

    async def delete_all(self) -> int:
        """
        Delete all documents and embeddings.

        Returns:
            int: Number of documents deleted
        """
        async with self._transaction("delete") as session:
            await rag_embedding_crud.delete_all(session)
            deleted = await rag_document_crud.delete_all(session)

        self._observer.emit(
            PipelineEvent(
                stage="store",
                name="store_cleared",
                message=f"Deleted all {deleted} documents",
            )
        )
        return deleted

    async def count_documents(self, source_type: SourceType | None = None) -> int:
        """Number of documents, optionally of one source category."""
        async with self._session("count") as session:
            if source_type is None:
                return await rag_document_crud.count(session)
            return await rag_document_crud.count_by_type(session, source_type.value)

    async def count_embeddings(self) -> int:
        """Number of stored embeddings."""
        async with self._session("count") as session:
            return await rag_embedding_crud.count(session)

    async def is_source_indexed(self, source_type: SourceType, source_id: str) -> bool:
        """Whether any chunk of the source is stored."""
        async with self._session("load") as session:
            return await rag_document_crud.is_source_indexed(
                session, source_type.value, source_id
            )

    async def indexed_source_ids(self, source_type: SourceType) -> list[str]:
        """Distinct identifiers of stored sources of one category."""
        async with self._session("load") as session:
            return await rag_document_crud.indexed_source_ids(session, source_type.value)
