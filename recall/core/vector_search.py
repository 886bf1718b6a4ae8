"""
Semantic and hybrid search over stored chunks.

Semantic search embeds the query once and scores every stored vector by
cosine similarity. Hybrid search takes FTS5 keyword candidates, scores
them by rank position and by cosine similarity, and fuses the two with
configurable weights. A keyword miss falls back to semantic search.

Dependencies: recall.boundary (store, embedding client), recall.core.similarity
System role: Retrieval engine behind context assembly and message search
"""

import logging

from recall.boundary.db.rag_store import RAGStore
from recall.boundary.embedding.embedding_client import EmbeddingClient
from recall.core.similarity import average_embedding, cosine_similarity, rank_by_similarity
from recall.models.document import RankedResult, SourceType
from recall.observability.observer import NullObserver, PipelineEvent, PipelineObserver

DEFAULT_SEMANTIC_WEIGHT = 0.6
DEFAULT_KEYWORD_WEIGHT = 0.4
DEFAULT_KEYWORD_CANDIDATES = 50


class VectorSearchService:
    """
    Brute-force vector search with keyword fusion.

    Every query costs one embedding call and a linear scan over the
    candidate vectors, which is fine for corpora of a few thousand chunks.
    """

    def __init__(
        self,
        store: RAGStore,
        embedding_client: EmbeddingClient,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        keyword_candidate_limit: int = DEFAULT_KEYWORD_CANDIDATES,
        observer: PipelineObserver | None = None,
    ) -> None:
        """
        Initialize search service.

        Args:
            store: Document and vector store
            embedding_client: Client used to embed queries
            semantic_weight: Weight of cosine similarity in hybrid scores
            keyword_weight: Weight of keyword rank in hybrid scores
            keyword_candidate_limit: FTS candidates considered per hybrid query
            observer: Sink for pipeline events
        """
        self.store = store
        self.embedding_client = embedding_client
        self.semantic_weight = semantic_weight
        self.keyword_weight = keyword_weight
        self.keyword_candidate_limit = keyword_candidate_limit
        self._observer = observer or NullObserver()

    async def semantic_search(
        self,
        query: str,
        top_k: int = 5,
        source_type: SourceType | None = None,
        source_id: str | None = None,
    ) -> list[RankedResult]:
        """
        Rank stored chunks by cosine similarity to the query.

        Args:
            query: Natural-language query
            top_k: Number of results
            source_type: Optional source category filter
            source_id: Optional source identifier filter

        Returns:
            list[RankedResult]: Most similar first

        Raises:
            ConfigurationError: Provider not configured
            ValidationError: Query fails the embeddability gate
            TransientProviderError: Query embedding failed
            StorageError: Loading vectors failed
        """
        query_vector = await self.embedding_client.embed(query)
        candidates = await self.store.load_all(source_type=source_type, source_id=source_id)
        results = rank_by_similarity(query_vector, candidates, top_k)

        self._emit(
            "semantic_search",
            f"Scored {len(candidates)} vectors, returning {len(results)}",
            candidates=len(candidates),
            top_score=results[0].relevance_score if results else 0.0,
        )
        return results

    async def hybrid_search(
        self,
        query: str,
        top_k: int = 10,
        source_type: SourceType | None = None,
        source_id: str | None = None,
    ) -> list[RankedResult]:
        """
        Fuse keyword rank and semantic similarity.

        Flow:
        1. Fetch keyword candidates from the FTS5 index
        2. Fall back to semantic search when there are none
        3. Embed the query and load candidate vectors in one query
        4. Score each candidate as semantic_weight * cosine
           + keyword_weight * (N - position) / N
        5. Sort descending (stable) and keep top_k

        Args:
            query: Natural-language query
            top_k: Number of results
            source_type: Optional source category filter
            source_id: Optional source identifier filter

        Returns:
            list[RankedResult]: Highest fused score first

        Raises:
            ConfigurationError: Provider not configured
            ValidationError: Query fails the embeddability gate
            TransientProviderError: Query embedding failed
            StorageError: Search or vector load failed
        """
        keyword_hits = await self.store.full_text_search(
            query,
            limit=self.keyword_candidate_limit,
            source_type=source_type,
            source_id=source_id,
        )

        if not keyword_hits:
            self._emit("keyword_fallback", "No keyword matches, using semantic search")
            return await self.semantic_search(
                query, top_k=top_k, source_type=source_type, source_id=source_id
            )

        query_vector = await self.embedding_client.embed(query)
        vectors = await self.store.load_embeddings(doc.id for doc in keyword_hits)

        total = len(keyword_hits)
        scored = []
        for position, document in enumerate(keyword_hits):
            keyword_score = (total - position) / total
            semantic_score = cosine_similarity(query_vector, vectors.get(document.id, []))
            fused = self.semantic_weight * semantic_score + self.keyword_weight * keyword_score
            scored.append((fused, document))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        results = [
            RankedResult(document=document, relevance_score=score)
            for score, document in scored[:top_k]
        ]

        self._emit(
            "hybrid_search",
            f"Fused {total} keyword candidates, returning {len(results)}",
            candidates=total,
            top_score=results[0].relevance_score if results else 0.0,
        )
        return results

    async def find_similar_conversations(
        self,
        conversation_id: str,
        top_k: int = 5,
    ) -> list[tuple[str, float]]:
        """
        Rank other conversations by similarity of their mean chunk vectors.

        Args:
            conversation_id: Reference conversation
            top_k: Number of conversations to return

        Returns:
            list[tuple[str, float]]: (conversation_id, cosine) pairs, most
            similar first; empty if the reference has no stored chunks
        """
        own_vectors = await self.store.load_embeddings_for_source(
            SourceType.CONVERSATION, conversation_id
        )
        if not own_vectors:
            self._emit(
                "conversation_not_indexed",
                "Reference conversation has no stored chunks",
                level=logging.DEBUG,
                conversation_id=conversation_id,
            )
            return []

        reference = average_embedding(own_vectors)

        grouped: dict[str, list[list[float]]] = {}
        for embedded in await self.store.load_all(source_type=SourceType.CONVERSATION):
            source_id = embedded.document.source_id
            if source_id != conversation_id:
                grouped.setdefault(source_id, []).append(embedded.vector)

        similarities = [
            (source_id, cosine_similarity(reference, average_embedding(vectors)))
            for source_id, vectors in grouped.items()
        ]
        similarities.sort(key=lambda pair: pair[1], reverse=True)
        return similarities[:top_k]

    def _emit(self, name: str, message: str, level: int = logging.INFO, **fields) -> None:
        self._observer.emit(
            PipelineEvent(stage="search", name=name, message=message, level=level, fields=fields)
        )
