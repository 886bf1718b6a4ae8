"""
RAG document ORM model.

Stores text chunks for keyword and vector search. A SQLite FTS5 index
over chunk_text is created alongside the table (see fts.py) and keyed
on the integer seq column, an alias of the SQLite rowid.

Dependencies: sqlalchemy, recall.boundary.db.base
System role: Document persistence for retrieval
"""

import uuid

from sqlalchemy import JSON, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recall.boundary.db.base import Base, CreatedAtMixin
from recall.models.document import RAGDocument, SourceType


class RAGDocumentModel(Base, CreatedAtMixin):
    """
    Document ORM model for one retrievable chunk.

    Attributes:
        seq: INTEGER PRIMARY KEY (rowid alias) used by the FTS5 index
        id: UUID string, unique; referenced by embeddings
        source_type: message, conversation, code or documentation
        source_id: Message or conversation identifier
        chunk_text: Chunk text, already truncated to the model limit
        chunk_index: Position of the chunk within its source
        doc_metadata: String-keyed metadata (column "metadata")
        created_at: Creation timestamp (UTC)

    Relationships:
        embedding: One-to-one with RAGEmbeddingModel (cascade delete)
    """

    __tablename__ = "rag_documents"
    __table_args__ = (Index("ix_rag_documents_source", "source_type", "source_id"),)

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(36),
        unique=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    source_type: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str] = mapped_column(String(255), nullable=False)
    chunk_text: Mapped[str] = mapped_column(Text, nullable=False)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    doc_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    embedding = relationship(
        "RAGEmbeddingModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )

    def to_domain(self) -> RAGDocument:
        """Convert to the immutable domain document."""
        return RAGDocument(
            id=self.id,
            source_type=SourceType(self.source_type),
            source_id=self.source_id,
            chunk_text=self.chunk_text,
            chunk_index=self.chunk_index,
            created_at=self.created_at,
            metadata={str(k): str(v) for k, v in (self.doc_metadata or {}).items()},
        )
