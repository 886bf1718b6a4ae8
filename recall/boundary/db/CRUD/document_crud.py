"""
RAG document CRUD operations.

Extends BaseCRUD with source-scoped queries, bulk loads joined with
embeddings, and FTS5 keyword search.

Dependencies: sqlalchemy, recall.boundary.db.models
System role: Document persistence operations
"""

from typing import Sequence

from sqlalchemy import delete, exists, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from recall.boundary.db.CRUD.base_crud import BaseCRUD
from recall.boundary.db.fts import FTS_TABLE, fts_table
from recall.boundary.db.models.document_model import RAGDocumentModel
from recall.boundary.db.models.embedding_model import RAGEmbeddingModel


class RAGDocumentCRUD(BaseCRUD[RAGDocumentModel]):
    """
    CRUD operations for RAGDocumentModel.

    Filtering arguments left as None are not applied.
    """

    def __init__(self) -> None:
        """Initialize RAGDocumentCRUD with RAGDocumentModel."""
        super().__init__(RAGDocumentModel)

    @staticmethod
    def _scoped(stmt, source_type: str | None, source_id: str | None):
        if source_type is not None:
            stmt = stmt.where(RAGDocumentModel.source_type == source_type)
        if source_id is not None:
            stmt = stmt.where(RAGDocumentModel.source_id == source_id)
        return stmt

    async def load_with_embeddings(
        self,
        session: AsyncSession,
        source_type: str | None = None,
        source_id: str | None = None,
    ) -> Sequence[tuple[RAGDocumentModel, bytes]]:
        """
        Load documents joined with their embedding blobs.

        Args:
            session: Async database session
            source_type: Optional source category filter
            source_id: Optional source identifier filter

        Returns:
            Sequence of (document, embedding blob) rows in creation order
        """
        stmt = select(RAGDocumentModel, RAGEmbeddingModel.embedding).join(
            RAGEmbeddingModel, RAGEmbeddingModel.document_id == RAGDocumentModel.id
        )
        stmt = self._scoped(stmt, source_type, source_id).order_by(
            RAGDocumentModel.created_at, RAGDocumentModel.chunk_index
        )
        result = await session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def full_text_search(
        self,
        session: AsyncSession,
        match_query: str,
        limit: int = 50,
        source_type: str | None = None,
        source_id: str | None = None,
    ) -> Sequence[RAGDocumentModel]:
        """
        Keyword search over chunk text using the FTS5 index.

        Args:
            session: Async database session
            match_query: FTS5 MATCH expression (see fts.build_match_query)
            limit: Maximum number of documents
            source_type: Optional source category filter
            source_id: Optional source identifier filter

        Returns:
            Sequence of documents, best bm25 rank first
        """
        stmt = (
            select(RAGDocumentModel)
            .join(fts_table, fts_table.c.rowid == RAGDocumentModel.seq)
            .where(text(f"{FTS_TABLE} MATCH :match_query").bindparams(match_query=match_query))
        )
        stmt = self._scoped(stmt, source_type, source_id).order_by(fts_table.c.rank).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_type(self, session: AsyncSession, source_type: str) -> int:
        """
        Count documents of one source category.

        Args:
            session: Async database session
            source_type: Source category

        Returns:
            Number of documents
        """
        stmt = select(func.count()).select_from(RAGDocumentModel).where(
            RAGDocumentModel.source_type == source_type
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def is_source_indexed(
        self,
        session: AsyncSession,
        source_type: str,
        source_id: str,
    ) -> bool:
        """
        Check whether any chunk exists for a source.

        Args:
            session: Async database session
            source_type: Source category
            source_id: Source identifier

        Returns:
            True if at least one document exists
        """
        stmt = select(
            exists().where(
                RAGDocumentModel.source_type == source_type,
                RAGDocumentModel.source_id == source_id,
            )
        )
        result = await session.execute(stmt)
        return bool(result.scalar())

    async def indexed_source_ids(self, session: AsyncSession, source_type: str) -> list[str]:
        """
        Distinct source identifiers that have been indexed.

        Args:
            session: Async database session
            source_type: Source category

        Returns:
            list[str]: Source identifiers
        """
        stmt = (
            select(RAGDocumentModel.source_id)
            .where(RAGDocumentModel.source_type == source_type)
            .distinct()
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def delete_by_source(
        self,
        session: AsyncSession,
        source_type: str,
        source_id: str,
    ) -> int:
        """
        Delete every chunk of a source.

        Embeddings are removed by the ON DELETE CASCADE foreign key.

        Args:
            session: Async database session
            source_type: Source category
            source_id: Source identifier

        Returns:
            int: Number of documents deleted
        """
        stmt = delete(RAGDocumentModel).where(
            RAGDocumentModel.source_type == source_type,
            RAGDocumentModel.source_id == source_id,
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def delete_all(self, session: AsyncSession) -> int:
        """
        Delete every document.

        Args:
            session: Async database session

        Returns:
            int: Number of documents deleted
        """
        result = await session.execute(delete(RAGDocumentModel))
        return result.rowcount


rag_document_crud = RAGDocumentCRUD()
