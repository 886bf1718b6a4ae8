"""
RAG service facade.

Single entry point the chat application uses for indexing, context
building, search, statistics and deletion. Wires the store, embedding
client, search service, context builder and indexing pipeline together
and shares one observer between them.

Dependencies: recall.application.services.indexing_service, recall.core, recall.boundary
System role: Consumer surface of the retrieval subsystem
"""

import logging
from collections.abc import Sequence

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from recall.application.services.indexing_service import IndexingPipeline
from recall.boundary.db.rag_store import RAGStore
from recall.boundary.embedding.embedding_client import EmbeddingClient, create_embedding_client
from recall.configs.settings import Settings
from recall.core.chunker import ConversationChunker
from recall.core.context_builder import ContextBuilder
from recall.core.vector_search import VectorSearchService
from recall.models.document import RankedResult, SourceType
from recall.models.indexing import IndexingResult, RAGStatistics
from recall.models.message import ChatMessage
from recall.observability.observer import (
    ITEM_FAILED,
    ITEM_SKIPPED,
    CompositeObserver,
    CountingObserver,
    LoggingObserver,
)

logger = logging.getLogger(__name__)


class RAGService:
    """
    Retrieval-augmented context for the chat application.

    "No context" is reported as an empty string, never as an error.
    """

    def __init__(
        self,
        store: RAGStore,
        embedding_client: EmbeddingClient,
        search_service: VectorSearchService,
        context_builder: ContextBuilder,
        indexing_pipeline: IndexingPipeline,
        counter: CountingObserver | None = None,
        default_top_k: int = 10,
    ) -> None:
        """
        Initialize RAG service.

        Args:
            store: Document and vector store
            embedding_client: Embedding provider client
            search_service: Semantic/hybrid search
            context_builder: Context assembler
            indexing_pipeline: Write path
            counter: Observer whose skip/failure counts feed statistics
            default_top_k: Result count used when a caller gives none
        """
        self.store = store
        self.embedding_client = embedding_client
        self.search_service = search_service
        self.context_builder = context_builder
        self.indexing_pipeline = indexing_pipeline
        self.counter = counter or CountingObserver()
        self.default_top_k = default_top_k

    def is_available(self) -> bool:
        """Whether the embedding provider is configured."""
        return self.embedding_client.is_available()

    async def index_message(self, message: ChatMessage) -> IndexingResult:
        """Index one message; provider and storage errors propagate."""
        return await self.indexing_pipeline.index_message(message)

    async def index_messages(self, messages: Sequence[ChatMessage]) -> IndexingResult:
        """Index many messages, skipping the ones that fail to embed."""
        return await self.indexing_pipeline.index_messages(messages)

    async def index_conversation(
        self,
        conversation_id: str,
        messages: Sequence[ChatMessage],
    ) -> IndexingResult:
        """Chunk and index a whole conversation."""
        logger.info(
            f"{__name__}:index_conversation - conversation_id={conversation_id} "
            f"messages={len(messages)}"
        )
        return await self.indexing_pipeline.index_conversation(conversation_id, messages)

    async def build_context_for_query(
        self,
        query: str,
        library_id: str | None = None,
        top_k: int | None = None,
    ) -> str:
        """
        Build prompt context for a user query.

        Args:
            query: User query
            library_id: Only use chunks indexed for this library
            top_k: Maximum number of blocks (default_top_k if None)

        Returns:
            str: Context string, possibly empty
        """
        metadata_filter = {"library_id": library_id} if library_id else None
        if top_k is None:
            top_k = self.default_top_k
        return await self.context_builder.build_context(query, metadata_filter, top_k)

    async def build_conversation_context(self, conversation_id: str, query: str) -> str:
        """Build context from one conversation's indexed chunks."""
        return await self.context_builder.build_conversation_context(conversation_id, query)

    async def build_code_context(self, query: str, language: str | None = None) -> str:
        """Build context made of code-like chunks."""
        return await self.context_builder.build_code_context(query, language)

    async def build_multi_turn_context(
        self,
        turns: Sequence[str],
        library_id: str | None = None,
    ) -> str:
        """Build context from several recent user turns."""
        metadata_filter = {"library_id": library_id} if library_id else None
        return await self.context_builder.build_multi_turn_context(turns, metadata_filter)

    async def search_messages(
        self,
        query: str,
        limit: int | None = None,
    ) -> list[RankedResult]:
        """
        Hybrid search restricted to indexed messages.

        Args:
            query: Search query
            limit: Maximum number of results (default_top_k if None)

        Returns:
            list[RankedResult]: Best match first
        """
        if limit is None:
            limit = self.default_top_k
        return await self.search_service.hybrid_search(
            query, top_k=limit, source_type=SourceType.MESSAGE
        )

    async def find_similar_conversations(
        self,
        conversation_id: str,
        top_k: int = 5,
    ) -> list[tuple[str, float]]:
        """Conversations most similar to the given one, with cosine scores."""
        return await self.search_service.find_similar_conversations(conversation_id, top_k)

    async def get_statistics(self) -> RAGStatistics:
        """
        Counts of indexed content and of skipped/failed items.

        Returns:
            RAGStatistics: Current statistics
        """
        return RAGStatistics(
            total_documents=await self.store.count_documents(),
            total_embeddings=await self.store.count_embeddings(),
            message_documents=await self.store.count_documents(SourceType.MESSAGE),
            conversation_documents=await self.store.count_documents(SourceType.CONVERSATION),
            code_documents=await self.store.count_documents(SourceType.CODE),
            documentation_documents=await self.store.count_documents(SourceType.DOCUMENTATION),
            skipped_chunks=self.counter.count(ITEM_SKIPPED),
            failed_chunks=self.counter.count(ITEM_FAILED),
        )

    async def is_message_indexed(self, message_id: str) -> bool:
        """Whether a message has been indexed."""
        return await self.store.is_source_indexed(SourceType.MESSAGE, message_id)

    async def clear_all_data(self) -> int:
        """
        Delete every document and embedding.

        Returns:
            int: Number of documents deleted
        """
        deleted = await self.store.delete_all()
        logger.info(f"{__name__}:clear_all_data - deleted={deleted}")
        return deleted

    async def delete_conversation_data(self, conversation_id: str) -> int:
        """
        Delete the indexed chunks of one conversation.

        Args:
            conversation_id: Conversation identifier

        Returns:
            int: Number of documents deleted
        """
        deleted = await self.store.delete_by_source(SourceType.CONVERSATION, conversation_id)
        logger.info(
            f"{__name__}:delete_conversation_data - conversation_id={conversation_id} "
            f"deleted={deleted}"
        )
        return deleted

    async def aclose(self) -> None:
        """Release the embedding client's HTTP connections."""
        await self.embedding_client.aclose()


def create_rag_service(
    settings: Settings,
    session_factory: async_sessionmaker,
    http_client: httpx.AsyncClient | None = None,
) -> RAGService:
    """
    Build a fully wired RAGService from settings.

    Every component reports to one composite observer that logs events
    and counts skips and failures for statistics.

    Args:
        settings: Application settings
        session_factory: Async session factory bound to the database
        http_client: Optional pre-built HTTP client for the provider

    Returns:
        RAGService: Ready-to-use service
    """
    counter = CountingObserver()
    observer = CompositeObserver(LoggingObserver(), counter)
    retrieval = settings.retrieval

    store = RAGStore(session_factory, dimension=settings.embedding.dimension, observer=observer)
    embedding_client = create_embedding_client(
        settings.embedding, observer=observer, http_client=http_client
    )
    search_service = VectorSearchService(
        store,
        embedding_client,
        semantic_weight=retrieval.semantic_weight,
        keyword_weight=retrieval.keyword_weight,
        keyword_candidate_limit=retrieval.keyword_candidate_limit,
        observer=observer,
    )
    context_builder = ContextBuilder(
        search_service,
        max_context_tokens=retrieval.max_context_tokens,
        multi_turn_max_conversations=retrieval.multi_turn_max_conversations,
        observer=observer,
    )
    indexing_pipeline = IndexingPipeline(
        store,
        embedding_client,
        chunker=ConversationChunker(retrieval.chunk_max_chars),
        observer=observer,
        max_tokens=settings.embedding.max_tokens,
    )

    return RAGService(
        store=store,
        embedding_client=embedding_client,
        search_service=search_service,
        context_builder=context_builder,
        indexing_pipeline=indexing_pipeline,
        counter=counter,
        default_top_k=retrieval.default_top_k,
    )
