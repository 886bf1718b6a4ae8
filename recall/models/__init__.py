"""
Domain models and schemas.

Pydantic models shared by the store, search, context and indexing layers.
"""

from recall.models.chunk import ConversationChunk, Turn
from recall.models.document import EmbeddedDocument, RAGDocument, RankedResult, SourceType
from recall.models.indexing import IndexingResult, RAGStatistics
from recall.models.message import (
    ChatMessage,
    ImageAttachment,
    MessageContent,
    content_text,
    TextOnly,
    WithAttachments,
)

__all__ = [
    "ChatMessage",
    "ConversationChunk",
    "EmbeddedDocument",
    "ImageAttachment",
    "IndexingResult",
    "MessageContent",
    "RAGDocument",
    "RAGStatistics",
    "RankedResult",
    "SourceType",
    "TextOnly",
    "Turn",
    "WithAttachments",
    "content_text",
]
