"""
RAG document domain models.

Immutable chunk documents, ranked search results, and the document/vector
pairs produced by bulk loads.

Dependencies: pydantic
System role: Shared types for store, search and context layers
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceType(str, enum.Enum):
    """
    Category a chunk originates from.

    MESSAGE: A single chat message
    CONVERSATION: A chunk of consecutive turns from one conversation
    CODE: Code snippets
    DOCUMENTATION: Reference documentation
    """

    MESSAGE = "message"
    CONVERSATION = "conversation"
    CODE = "code"
    DOCUMENTATION = "documentation"


class RAGDocument(BaseModel):
    """A stored text chunk. Never modified after creation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Document identifier")
    source_type: SourceType = Field(description="Source category")
    source_id: str = Field(description="Message or conversation identifier")
    chunk_text: str = Field(description="Chunk text as embedded")
    chunk_index: int = Field(default=0, ge=0, description="Position within the source")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, str] = Field(default_factory=dict, description="String metadata")


class RankedResult(BaseModel):
    """Document with a relevance score, produced by search."""

    document: RAGDocument
    relevance_score: float = Field(description="Relevance clamped to [0, 1]")

    @field_validator("relevance_score")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return min(1.0, max(0.0, value))


@dataclass(frozen=True)
class EmbeddedDocument:
    """Document paired with its decoded embedding vector."""

    document: RAGDocument
    vector: list[float]
