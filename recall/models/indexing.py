"""
Indexing outcome and statistics models.

Dependencies: pydantic
System role: Return types for the indexing pipeline and statistics API
"""

from pydantic import BaseModel, Field


class IndexingResult(BaseModel):
    """Outcome of one indexing call."""

    indexed: int = Field(default=0, description="Documents written")
    skipped: int = Field(default=0, description="Items intentionally not indexed")
    failed: int = Field(default=0, description="Items that errored and were skipped")

    def merge(self, other: "IndexingResult") -> "IndexingResult":
        """Sum two results."""
        return IndexingResult(
            indexed=self.indexed + other.indexed,
            skipped=self.skipped + other.skipped,
            failed=self.failed + other.failed,
        )


class RAGStatistics(BaseModel):
    """Counts describing indexed content and pipeline health."""

    total_documents: int
    total_embeddings: int
    message_documents: int
    conversation_documents: int
    code_documents: int = 0
    documentation_documents: int = 0
    skipped_chunks: int = Field(default=0, description="Items skipped since process start")
    failed_chunks: int = Field(default=0, description="Items that failed since process start")
