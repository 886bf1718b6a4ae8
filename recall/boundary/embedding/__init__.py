"""
Embedding provider boundary.

Exports:
  - EmbeddingClient: batching, throttling, order-preserving provider wrapper
  - EmbeddingRequest, EmbeddingResponse, EmbeddingDataItem: wire schemas
  - create_embedding_client(): factory from settings
"""

from recall.boundary.embedding.embedding_client import EmbeddingClient, create_embedding_client
from recall.boundary.embedding.embedding_schemas import (
    EmbeddingDataItem,
    EmbeddingRequest,
    EmbeddingResponse,
)

__all__ = [
    "EmbeddingClient",
    "EmbeddingDataItem",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "create_embedding_client",
]
