"""
Embedding API schemas.

Pydantic models for the OpenAI-compatible embeddings endpoint.

Dependencies: pydantic
System role: Type definitions for provider requests and responses
"""

from pydantic import BaseModel, Field


class EmbeddingRequest(BaseModel):
    """Request body for one embeddings call."""

    model: str = Field(description="Embedding model identifier")
    input: list[str] = Field(description="Texts to embed")


class EmbeddingDataItem(BaseModel):
    """One vector in the response, tagged with its input position."""

    embedding: list[float] = Field(description="Embedding vector")
    index: int = Field(ge=0, description="Position of the source text in the request")
    object: str = "embedding"


class EmbeddingResponse(BaseModel):
    """Response body of an embeddings call. Item order is not guaranteed."""

    data: list[EmbeddingDataItem]
    model: str | None = None
    object: str = "list"
