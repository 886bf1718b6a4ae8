"""
RAG API schemas.

Request/response schemas for the indexing, context and search endpoints.

Dependencies: pydantic
System role: RAG API contracts
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from recall.models.document import RankedResult, SourceType
from recall.models.message import ChatMessage


class IndexMessagesRequest(BaseModel):
    """Request schema for indexing one or more messages."""

    messages: list[ChatMessage] = Field(min_length=1, description="Messages to index")


class IndexConversationRequest(BaseModel):
    """Request schema for indexing a conversation."""

    messages: list[ChatMessage] = Field(description="Messages in conversation order")


class ContextRequest(BaseModel):
    """Request schema for building prompt context."""

    query: str = Field(default="", description="User query")
    mode: Literal["general", "conversation", "code", "multi_turn"] = "general"
    library_id: str | None = Field(default=None, description="Library filter (general, multi_turn)")
    top_k: int | None = Field(
        default=None, ge=1, le=100, description="Maximum blocks (general); server default if omitted"
    )
    conversation_id: str | None = Field(default=None, description="Required for conversation mode")
    language: str | None = Field(default=None, description="Language hint for code mode")
    turns: list[str] = Field(default_factory=list, description="Recent turns for multi_turn mode")

    @model_validator(mode="after")
    def _check_mode_fields(self) -> "ContextRequest":
        if self.mode == "conversation" and not self.conversation_id:
            raise ValueError("conversation_id is required for conversation mode")
        if self.mode == "multi_turn" and not self.turns:
            raise ValueError("turns are required for multi_turn mode")
        if self.mode != "multi_turn" and not self.query.strip():
            raise ValueError("query must not be blank")
        return self


class ContextResponse(BaseModel):
    """Response schema for built context; empty context is a normal result."""

    context: str
    has_context: bool


class SearchResultResponse(BaseModel):
    """One ranked search hit."""

    document_id: str
    source_type: SourceType
    source_id: str
    chunk_text: str
    relevance_score: float
    metadata: dict[str, str]

    @classmethod
    def from_ranked(cls, result: RankedResult) -> "SearchResultResponse":
        document = result.document
        return cls(
            document_id=document.id,
            source_type=document.source_type,
            source_id=document.source_id,
            chunk_text=document.chunk_text,
            relevance_score=result.relevance_score,
            metadata=document.metadata,
        )


class SimilarConversationResponse(BaseModel):
    """Conversation ranked by similarity to a reference conversation."""

    conversation_id: str
    similarity: float


class MessageIndexedResponse(BaseModel):
    """Whether a message has been indexed."""

    message_id: str
    indexed: bool


class DeleteResponse(BaseModel):
    """Number of documents removed."""

    deleted: int
