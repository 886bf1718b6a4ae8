"""
Test suite for IndexingPipeline.

Tests eligibility skips, truncation before embedding, best-effort batch
indexing with per-message degradation, conversation chunk indexing and
error propagation.

System role: Verification of the retrieval write path
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from recall.application.services.indexing_service import IndexingPipeline
from recall.core.chunker import ConversationChunker
from recall.core.exceptions import StorageError, TransientProviderError
from recall.models.document import SourceType
from recall.models.message import ChatMessage, ImageAttachment, WithAttachments
from recall.observability.observer import ITEM_FAILED, ITEM_SKIPPED, CountingObserver


def _with_image(text: str) -> ChatMessage:
    return ChatMessage(
        content=WithAttachments(text=text, attachments=[ImageAttachment(mime_type="image/png")]),
        is_user=True,
    )


@pytest.fixture
def mock_store() -> AsyncMock:
    """Store mock recording inserted documents."""
    store = AsyncMock()
    store.insert_with_embedding = AsyncMock(side_effect=lambda doc, vector, model: doc)
    return store


def _stored(mock_store: AsyncMock) -> list:
    return [call.args[0] for call in mock_store.insert_with_embedding.call_args_list]


class TestIndexMessage:
    """Test suite for IndexingPipeline.index_message()."""

    async def test_should_store_message_document_with_metadata(
        self, mock_store, stub_embedder
    ) -> None:
        # Arrange
        pipeline = IndexingPipeline(mock_store, stub_embedder)
        message = ChatMessage.from_text(
            "create a rotating torus", is_user=True, library_id="babylon", conversation_id="c-1"
        )

        # Act
        result = await pipeline.index_message(message)

        # Assert
        assert result.indexed == 1
        document, vector, model = mock_store.insert_with_embedding.call_args.args
        assert document.source_type == SourceType.MESSAGE
        assert document.source_id == message.id
        assert document.chunk_index == 0
        assert document.metadata == {
            "timestamp": message.timestamp.isoformat(),
            "is_user": "true",
            "library_id": "babylon",
            "conversation_id": "c-1",
        }
        assert vector == stub_embedder.vector_for("create a rotating torus")
        assert model == stub_embedder.model

    async def test_long_message_should_be_truncated_before_embedding(
        self, mock_store, stub_embedder
    ) -> None:
        """Test a 20,000-character message reaches the embedder as max_tokens * 4 chars."""
        # Arrange
        pipeline = IndexingPipeline(mock_store, stub_embedder, max_tokens=2000)
        text = "".join(chr(ord("a") + i % 26) for i in range(20_000))

        # Act
        await pipeline.index_message(ChatMessage.from_text(text, is_user=False))

        # Assert
        assert stub_embedder.embedded_texts == [text[:8000]]
        assert _stored(mock_store)[0].chunk_text == text[:8000]

    @pytest.mark.parametrize(
        "message",
        [
            ChatMessage.from_text("tiny", is_user=True),
            ChatMessage.from_text("          ", is_user=True),
            _with_image("look at this screenshot of my scene"),
        ],
        ids=["too-short", "blank", "attachments"],
    )
    async def test_ineligible_message_should_be_skipped(
        self, mock_store, stub_embedder, recorder, message
    ) -> None:
        pipeline = IndexingPipeline(mock_store, stub_embedder, observer=recorder)

        result = await pipeline.index_message(message)

        assert result.skipped == 1
        assert stub_embedder.embedded_texts == []
        mock_store.insert_with_embedding.assert_not_called()
        assert recorder.names() == [ITEM_SKIPPED]

    async def test_unavailable_provider_should_skip(self, mock_store, embedder_factory) -> None:
        pipeline = IndexingPipeline(mock_store, embedder_factory(available=False))

        result = await pipeline.index_message(ChatMessage.from_text("long enough text", is_user=True))

        assert result.skipped == 1
        mock_store.insert_with_embedding.assert_not_called()

    async def test_provider_error_should_propagate(self, mock_store, embedder_factory) -> None:
        pipeline = IndexingPipeline(mock_store, embedder_factory(failing_words=("explode",)))

        with pytest.raises(TransientProviderError):
            await pipeline.index_message(ChatMessage.from_text("please explode now", is_user=True))

    async def test_storage_error_should_propagate(self, mock_store, stub_embedder) -> None:
        mock_store.insert_with_embedding.side_effect = StorageError("disk full", operation="insert")
        pipeline = IndexingPipeline(mock_store, stub_embedder)

        with pytest.raises(StorageError):
            await pipeline.index_message(ChatMessage.from_text("long enough text", is_user=True))


class TestIndexMessages:
    """Test suite for IndexingPipeline.index_messages()."""

    async def test_should_batch_embed_eligible_messages(self, mock_store, stub_embedder) -> None:
        # Arrange
        pipeline = IndexingPipeline(mock_store, stub_embedder)
        messages = [
            ChatMessage.from_text("first eligible message", is_user=True),
            ChatMessage.from_text("short", is_user=True),
            _with_image("message that carried an image"),
            ChatMessage.from_text("second eligible message", is_user=False),
        ]

        # Act
        result = await pipeline.index_messages(messages)

        # Assert
        assert (result.indexed, result.skipped, result.failed) == (2, 2, 0)
        assert stub_embedder.batch_calls == [["first eligible message", "second eligible message"]]
        assert [doc.source_id for doc in _stored(mock_store)] == [messages[0].id, messages[3].id]

    async def test_batch_failure_should_degrade_to_per_message(
        self, mock_store, embedder_factory
    ) -> None:
        """Test one bad message is counted and skipped while the rest are indexed."""
        # Arrange
        counter = CountingObserver()
        embedder = embedder_factory(fail_batches=True, failing_words=("poison",))
        pipeline = IndexingPipeline(mock_store, embedder, observer=counter)
        messages = [
            ChatMessage.from_text("good message number one", is_user=True),
            ChatMessage.from_text("poison message in the middle", is_user=True),
            ChatMessage.from_text("good message number two", is_user=True),
        ]

        # Act
        result = await pipeline.index_messages(messages)

        # Assert
        assert (result.indexed, result.skipped, result.failed) == (2, 0, 1)
        assert counter.count(ITEM_FAILED) == 1
        assert counter.count("batch_degraded") == 1
        assert len(_stored(mock_store)) == 2

    async def test_storage_error_should_propagate_from_batch(self, mock_store, stub_embedder) -> None:
        mock_store.insert_with_embedding.side_effect = StorageError("locked", operation="insert")
        pipeline = IndexingPipeline(mock_store, stub_embedder)

        with pytest.raises(StorageError):
            await pipeline.index_messages([ChatMessage.from_text("long enough text", is_user=True)])

    async def test_unavailable_provider_should_skip_all(self, mock_store, embedder_factory) -> None:
        counter = CountingObserver()
        pipeline = IndexingPipeline(mock_store, embedder_factory(available=False), observer=counter)

        result = await pipeline.index_messages(
            [ChatMessage.from_text(f"message number {i}", is_user=True) for i in range(3)]
        )

        assert result.skipped == 3
        assert counter.count(ITEM_SKIPPED) == 3

    async def test_empty_input_should_do_nothing(self, mock_store, stub_embedder) -> None:
        result = await IndexingPipeline(mock_store, stub_embedder).index_messages([])

        assert (result.indexed, result.skipped, result.failed) == (0, 0, 0)
        assert stub_embedder.batch_calls == []


class TestIndexConversation:
    """Test suite for IndexingPipeline.index_conversation()."""

    async def test_should_store_one_document_per_chunk(self, mock_store, stub_embedder) -> None:
        # Arrange
        pipeline = IndexingPipeline(
            mock_store, stub_embedder, chunker=ConversationChunker(max_chunk_chars=80)
        )
        messages = [
            ChatMessage.from_text(f"message {i} with some padding text", is_user=i % 2 == 0)
            for i in range(6)
        ]

        # Act
        result = await pipeline.index_conversation("conv-42", messages)

        # Assert
        documents = _stored(mock_store)
        assert result.indexed == len(documents) > 1
        for index, document in enumerate(documents):
            assert document.source_type == SourceType.CONVERSATION
            assert document.source_id == "conv-42"
            assert document.chunk_index == index
            assert document.metadata["conversation_id"] == "conv-42"
            assert document.metadata["chunk_index"] == str(index)
        assert sum(int(d.metadata["message_count"]) for d in documents) == 6

    async def test_failing_chunk_should_be_counted_and_skipped(
        self, mock_store, embedder_factory
    ) -> None:
        # Arrange
        counter = CountingObserver()
        embedder = embedder_factory(failing_words=("poison",))
        pipeline = IndexingPipeline(
            mock_store,
            embedder,
            chunker=ConversationChunker(max_chunk_chars=10),
            observer=counter,
        )
        messages = [
            ChatMessage.from_text("first healthy turn", is_user=True),
            ChatMessage.from_text("poison turn here", is_user=False),
            ChatMessage.from_text("last healthy turn", is_user=True),
        ]

        # Act
        result = await pipeline.index_conversation("conv-1", messages)

        # Assert
        assert (result.indexed, result.skipped, result.failed) == (2, 0, 1)
        assert counter.count(ITEM_FAILED) == 1
        assert [doc.chunk_index for doc in _stored(mock_store)] == [0, 2]

    async def test_oversized_chunk_should_be_truncated(self, mock_store, stub_embedder) -> None:
        pipeline = IndexingPipeline(mock_store, stub_embedder, max_tokens=100)

        await pipeline.index_conversation("c", [ChatMessage.from_text("x" * 5000, is_user=True)])

        assert len(_stored(mock_store)[0].chunk_text) == 400

    async def test_storage_error_should_propagate(self, mock_store, stub_embedder) -> None:
        mock_store.insert_with_embedding.side_effect = StorageError("gone", operation="insert")
        pipeline = IndexingPipeline(mock_store, stub_embedder)

        with pytest.raises(StorageError):
            await pipeline.index_conversation("c", [ChatMessage.from_text("hello there you", is_user=True)])

    async def test_empty_conversation_should_index_nothing(self, mock_store, stub_embedder) -> None:
        result = await IndexingPipeline(mock_store, stub_embedder).index_conversation("c", [])

        assert result.indexed == 0
        mock_store.insert_with_embedding.assert_not_called()


class TestCancellation:
    """Cancelling a conversation mid-way leaves only complete documents."""

    async def test_cancel_during_second_chunk_should_leave_no_orphans(
        self, rag_store, embedder_factory
    ) -> None:
        # Arrange
        second_embed_started = asyncio.Event()

        class BlockingEmbedder(embedder_factory):
            async def embed(self, text: str) -> list[float]:
                if self.embedded_texts:
                    second_embed_started.set()
                    await asyncio.Event().wait()
                return await super().embed(text)

        pipeline = IndexingPipeline(
            rag_store, BlockingEmbedder(), chunker=ConversationChunker(max_chunk_chars=40)
        )
        messages = [
            ChatMessage.from_text("first turn about cubes", is_user=True),
            ChatMessage.from_text("second turn on spheres", is_user=False),
            ChatMessage.from_text("third turn for cameras", is_user=True),
        ]

        # Act
        task = asyncio.create_task(pipeline.index_conversation("conv-1", messages))
        await second_embed_started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        # Assert
        assert await rag_store.count_documents() == 1
        assert await rag_store.count_documents() == await rag_store.count_embeddings()
