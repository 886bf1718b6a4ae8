"""
Indexing pipeline.

Turns chat messages and conversations into stored, embedded documents:
gate, truncate, embed, then persist each document together with its
vector in one transaction. Batch operations are best effort; an item
that cannot be embedded is reported to the observer and skipped.

Dependencies: recall.boundary (store, embedding client), recall.core
System role: Write path of the retrieval subsystem
"""

import logging
import uuid
from collections.abc import Sequence

from recall.boundary.db.rag_store import RAGStore
from recall.boundary.embedding.embedding_client import EmbeddingClient
from recall.core.chunker import ConversationChunker
from recall.core.embeddability import DEFAULT_MAX_TOKENS, is_embeddable, truncate_to_limit
from recall.core.exceptions import TransientProviderError, ValidationError
from recall.models.document import RAGDocument, SourceType
from recall.models.indexing import IndexingResult
from recall.models.message import ChatMessage, TextOnly, WithAttachments
from recall.observability.observer import (
    ITEM_FAILED,
    ITEM_SKIPPED,
    NullObserver,
    PipelineEvent,
    PipelineObserver,
)


class IndexingPipeline:
    """
    Index messages and conversations for retrieval.

    Storage failures always propagate. Provider failures propagate from
    index_message and are counted and skipped in the batch operations.
    """

    def __init__(
        self,
        store: RAGStore,
        embedding_client: EmbeddingClient,
        chunker: ConversationChunker | None = None,
        observer: PipelineObserver | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        """
        Initialize indexing pipeline.

        Args:
            store: Document and vector store
            embedding_client: Embedding provider client
            chunker: Conversation chunker (default budget if None)
            observer: Sink for pipeline events
            max_tokens: Embedding model token limit used for truncation
        """
        self.store = store
        self.embedding_client = embedding_client
        self.chunker = chunker or ConversationChunker()
        self.max_tokens = max_tokens
        self._observer = observer or NullObserver()

    async def index_message(self, message: ChatMessage) -> IndexingResult:
        """
        Index a single chat message.

        Args:
            message: Message to index

        Returns:
            IndexingResult: indexed=1, or skipped=1 when the message is not eligible

        Raises:
            TransientProviderError: Embedding call failed
            ValidationError: Provider returned a vector of the wrong dimension
            StorageError: Persisting the document failed
        """
        if not self._provider_ready():
            return IndexingResult(skipped=1)

        text = self._eligible_text(message)
        if text is None:
            return IndexingResult(skipped=1)

        vector = await self.embedding_client.embed(text)
        await self._store_message(message, text, vector)
        return IndexingResult(indexed=1)

    async def index_messages(self, messages: Sequence[ChatMessage]) -> IndexingResult:
        """
        Index many messages, best effort.

        Eligible texts are embedded in throttled batches. If a batch call
        fails, every eligible message is retried individually and each
        failure is counted and skipped.

        Args:
            messages: Messages to index

        Returns:
            IndexingResult: Totals over all messages

        Raises:
            StorageError: Persisting a document failed
        """
        if not messages:
            return IndexingResult()
        if not self._provider_ready(count=len(messages)):
            return IndexingResult(skipped=len(messages))

        skipped = 0
        eligible: list[tuple[ChatMessage, str]] = []
        for message in messages:
            text = self._eligible_text(message)
            if text is None:
                skipped += 1
            else:
                eligible.append((message, text))

        if not eligible:
            return IndexingResult(skipped=skipped)

        try:
            vectors = await self.embedding_client.embed_batch_chunked([text for _, text in eligible])
        except (TransientProviderError, ValidationError) as e:
            self._emit(
                "batch_degraded",
                f"Batch embedding failed, indexing {len(eligible)} messages one by one",
                level=logging.WARNING,
                error=str(e),
            )
            result = await self._index_individually(eligible)
            return result.merge(IndexingResult(skipped=skipped))

        for (message, text), vector in zip(eligible, vectors):
            await self._store_message(message, text, vector)

        self._emit(
            "batch_indexed",
            f"Indexed {len(eligible)}/{len(messages)} messages",
            indexed=len(eligible),
            skipped=skipped,
        )
        return IndexingResult(indexed=len(eligible), skipped=skipped)

    async def index_conversation(
        self,
        conversation_id: str,
        messages: Sequence[ChatMessage],
    ) -> IndexingResult:
        """
        Chunk a conversation and index every chunk.

        Each chunk is written with its embedding in its own transaction,
        so cancelling between chunks leaves only complete documents.

        Args:
            conversation_id: Conversation identifier (becomes source_id)
            messages: Messages in conversation order

        Returns:
            IndexingResult: Totals over all chunks

        Raises:
            StorageError: Persisting a chunk failed
        """
        chunks = self.chunker.chunk_messages(messages)
        if not chunks:
            return IndexingResult()
        if not self._provider_ready(count=len(chunks)):
            return IndexingResult(skipped=len(chunks))

        indexed = skipped = failed = 0
        for index, chunk in enumerate(chunks):
            text = truncate_to_limit(chunk.text, self.max_tokens)
            if not is_embeddable(text, self.embedding_client.min_chars):
                self._skip("too_short", conversation_id=conversation_id, chunk_index=index)
                skipped += 1
                continue

            try:
                vector = await self.embedding_client.embed(text)
            except (TransientProviderError, ValidationError) as e:
                self._fail(e, conversation_id=conversation_id, chunk_index=index)
                failed += 1
                continue

            document = RAGDocument(
                id=str(uuid.uuid4()),
                source_type=SourceType.CONVERSATION,
                source_id=conversation_id,
                chunk_text=text,
                chunk_index=index,
                metadata={
                    "conversation_id": conversation_id,
                    "chunk_index": str(index),
                    "message_count": str(chunk.message_count),
                },
            )
            await self.store.insert_with_embedding(document, vector, self.embedding_client.model)
            indexed += 1

        self._emit(
            "conversation_indexed",
            f"Indexed {indexed}/{len(chunks)} chunks",
            conversation_id=conversation_id,
            skipped=skipped,
            failed=failed,
        )
        return IndexingResult(indexed=indexed, skipped=skipped, failed=failed)

    async def _index_individually(
        self,
        eligible: Sequence[tuple[ChatMessage, str]],
    ) -> IndexingResult:
        indexed = failed = 0
        for message, text in eligible:
            try:
                vector = await self.embedding_client.embed(text)
            except (TransientProviderError, ValidationError) as e:
                self._fail(e, message_id=message.id)
                failed += 1
                continue
            await self._store_message(message, text, vector)
            indexed += 1
        return IndexingResult(indexed=indexed, failed=failed)

    async def _store_message(self, message: ChatMessage, text: str, vector: list[float]) -> None:
        metadata = {
            "timestamp": message.timestamp.isoformat(),
            "is_user": str(message.is_user).lower(),
        }
        if message.library_id:
            metadata["library_id"] = message.library_id
        if message.conversation_id:
            metadata["conversation_id"] = message.conversation_id

        document = RAGDocument(
            id=str(uuid.uuid4()),
            source_type=SourceType.MESSAGE,
            source_id=message.id,
            chunk_text=text,
            chunk_index=0,
            metadata=metadata,
        )
        await self.store.insert_with_embedding(document, vector, self.embedding_client.model)
        self._emit(
            "message_indexed",
            "Indexed message",
            level=logging.DEBUG,
            message_id=message.id,
            chars=len(text),
        )

    def _eligible_text(self, message: ChatMessage) -> str | None:
        """Truncated text to embed, or None (observed as skipped) if ineligible."""
        content = message.content
        if isinstance(content, WithAttachments):
            self._skip("has_attachments", message_id=message.id)
            return None
        if isinstance(content, TextOnly):
            text = content.text
        else:
            raise TypeError(f"Unknown message content variant: {type(content).__name__}")

        if not is_embeddable(text, self.embedding_client.min_chars):
            self._skip("too_short", message_id=message.id)
            return None
        return truncate_to_limit(text, self.max_tokens)

    def _provider_ready(self, count: int = 1) -> bool:
        if self.embedding_client.is_available():
            return True
        for _ in range(count):
            self._skip("provider_unavailable")
        return False

    def _skip(self, reason: str, **fields) -> None:
        self._emit(ITEM_SKIPPED, f"Skipped item: {reason}", level=logging.DEBUG, reason=reason, **fields)

    def _fail(self, error: Exception, **fields) -> None:
        self._emit(
            ITEM_FAILED,
            f"Failed to embed item: {error}",
            level=logging.WARNING,
            error_type=type(error).__name__,
            **fields,
        )

    def _emit(self, name: str, message: str, level: int = logging.INFO, **fields) -> None:
        self._observer.emit(
            PipelineEvent(stage="indexing", name=name, message=message, level=level, fields=fields)
        )
