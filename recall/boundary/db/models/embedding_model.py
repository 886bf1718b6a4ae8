"""
RAG embedding ORM model.

Stores one fixed-dimension vector per document as a big-endian float32
blob, deleted together with its document.

Dependencies: sqlalchemy, recall.boundary.db.base
System role: Vector persistence for brute-force similarity search
"""

from sqlalchemy import ForeignKey, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recall.boundary.db.base import Base, CreatedAtMixin, UUIDMixin


class RAGEmbeddingModel(Base, UUIDMixin, CreatedAtMixin):
    """
    Embedding ORM model.

    Attributes:
        id: UUID string primary key
        document_id: Owning document (unique, ON DELETE CASCADE)
        embedding: Encoded vector blob
        embedding_model: Model that produced the vector
        dimension: Number of vector components
        created_at: Creation timestamp (UTC)
    """

    __tablename__ = "rag_embeddings"

    document_id: Mapped[str] = mapped_column(
        ForeignKey("rag_documents.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    embedding: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    embedding_model: Mapped[str] = mapped_column(String(255), nullable=False)
    dimension: Mapped[int] = mapped_column(Integer, nullable=False)

    document = relationship("RAGDocumentModel", back_populates="embedding")
