"""
RAG embedding CRUD operations.

Extends BaseCRUD with vector lookups by document and by source.

Dependencies: sqlalchemy, recall.boundary.db.models
System role: Embedding persistence operations
"""

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from recall.boundary.db.CRUD.base_crud import BaseCRUD
from recall.boundary.db.models.document_model import RAGDocumentModel
from recall.boundary.db.models.embedding_model import RAGEmbeddingModel


class RAGEmbeddingCRUD(BaseCRUD[RAGEmbeddingModel]):
    """CRUD operations for RAGEmbeddingModel."""

    def __init__(self) -> None:
        """Initialize RAGEmbeddingCRUD with RAGEmbeddingModel."""
        super().__init__(RAGEmbeddingModel)

    async def get_blobs_for_documents(
        self,
        session: AsyncSession,
        document_ids: Iterable[str],
    ) -> dict[str, bytes]:
        """
        Fetch embedding blobs for several documents in one query.

        Args:
            session: Async database session
            document_ids: Document identifiers

        Returns:
            dict[str, bytes]: Blob per document id; missing ids are absent
        """
        ids = list(document_ids)
        if not ids:
            return {}
        stmt = select(RAGEmbeddingModel.document_id, RAGEmbeddingModel.embedding).where(
            RAGEmbeddingModel.document_id.in_(ids)
        )
        result = await session.execute(stmt)
        return {row[0]: row[1] for row in result.all()}

    async def get_blobs_for_source(
        self,
        session: AsyncSession,
        source_type: str,
        source_id: str,
    ) -> list[bytes]:
        """
        Fetch all embedding blobs belonging to one source.

        Args:
            session: Async database session
            source_type: Source category
            source_id: Source identifier

        Returns:
            list[bytes]: Blobs in chunk order
        """
        stmt = (
            select(RAGEmbeddingModel.embedding)
            .join(RAGDocumentModel, RAGEmbeddingModel.document_id == RAGDocumentModel.id)
            .where(
                RAGDocumentModel.source_type == source_type,
                RAGDocumentModel.source_id == source_id,
            )
            .order_by(RAGDocumentModel.chunk_index)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_source(
        self,
        session: AsyncSession,
        source_type: str,
        source_id: str,
    ) -> int:
        """
        Delete the embeddings of one source's documents.

        Args:
            session: Async database session
            source_type: Source category
            source_id: Source identifier

        Returns:
            int: Number of embeddings deleted
        """
        document_ids = select(RAGDocumentModel.id).where(
            RAGDocumentModel.source_type == source_type,
            RAGDocumentModel.source_id == source_id,
        )
        result = await session.execute(
            delete(RAGEmbeddingModel).where(RAGEmbeddingModel.document_id.in_(document_ids))
        )
        return result.rowcount

    async def delete_all(self, session: AsyncSession) -> int:
        """
        Delete every embedding.

        Args:
            session: Async database session

        Returns:
            int: Number of embeddings deleted
        """
        result = await session.execute(delete(RAGEmbeddingModel))
        return result.rowcount


rag_embedding_crud = RAGEmbeddingCRUD()
