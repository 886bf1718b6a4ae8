"""
Conversation chunker.

Groups ordered turns into chunks under a character budget. Turns are
never split; a turn larger than the budget becomes a chunk of its own
and is truncated later by the embeddability gate.

Dependencies: recall.models
System role: First stage of conversation indexing
"""

from collections.abc import Iterable, Sequence

from recall.models.chunk import ConversationChunk, Turn
from recall.models.message import ChatMessage, content_text

DEFAULT_MAX_CHUNK_CHARS = 6000  # ~1500 tokens


def turns_from_messages(messages: Iterable[ChatMessage]) -> list[Turn]:
    """
    Convert chat messages to speaker turns.

    Args:
        messages: Messages in conversation order

    Returns:
        list[Turn]: One turn per message, same order
    """
    return [Turn(role=message.role, text=content_text(message.content)) for message in messages]


class ConversationChunker:
    """Split ordered turns into bounded chunks of whole turns."""

    def __init__(self, max_chunk_chars: int = DEFAULT_MAX_CHUNK_CHARS) -> None:
        """
        Initialize chunker.

        Args:
            max_chunk_chars: Target character budget per chunk

        Raises:
            ValueError: When max_chunk_chars is not positive
        """
        if max_chunk_chars <= 0:
            raise ValueError("max_chunk_chars must be positive")
        self.max_chunk_chars = max_chunk_chars

    def chunk(self, turns: Sequence[Turn]) -> list[ConversationChunk]:
        """
        Group turns into chunks.

        A chunk is closed when adding the next turn would push it past the
        budget. Every turn lands in exactly one chunk, in order.

        Args:
            turns: Turns in conversation order

        Returns:
            list[ConversationChunk]: Chunks in order; empty for no turns
        """
        chunks: list[ConversationChunk] = []
        current: list[Turn] = []
        current_len = 0

        for turn in turns:
            turn_len = len(turn.render())
            if current and current_len + turn_len > self.max_chunk_chars:
                chunks.append(ConversationChunk(turns=current))
                current = []
                current_len = 0
            current.append(turn)
            current_len += turn_len

        if current:
            chunks.append(ConversationChunk(turns=current))

        return chunks

    def chunk_messages(self, messages: Sequence[ChatMessage]) -> list[ConversationChunk]:
        """Chunk chat messages directly."""
        return self.chunk(turns_from_messages(messages))
