"""
RAG API endpoints.

Routes:
- POST /rag/messages - Index messages
- GET /rag/messages/{id}/indexed - Check whether a message is indexed
- POST /rag/conversations/{id} - Index a conversation
- GET /rag/conversations/{id}/similar - Find similar conversations
- DELETE /rag/conversations/{id} - Delete a conversation's indexed data
- POST /rag/context - Build prompt context
- GET /rag/search - Search indexed messages
- GET /rag/statistics - Indexing statistics
- DELETE /rag - Delete all indexed data

Dependencies: recall.application.services.rag_service, recall.models
System role: Retrieval HTTP API
"""

import logging

from fastapi import APIRouter, Depends, Query

from recall.api.deps import get_rag_service
from recall.api.routers.router_utils import to_http_exception
from recall.application.services.rag_service import RAGService
from recall.core.exceptions import RecallException
from recall.models.indexing import IndexingResult, RAGStatistics
from recall.models.rag_api import (
    ContextRequest,
    ContextResponse,
    DeleteResponse,
    IndexConversationRequest,
    IndexMessagesRequest,
    MessageIndexedResponse,
    SearchResultResponse,
    SimilarConversationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rag", tags=["rag"])


@router.post("/messages", response_model=IndexingResult)
async def index_messages(
    request: IndexMessagesRequest,
    rag_service: RAGService = Depends(get_rag_service),
) -> IndexingResult:
    """
    Index one or more chat messages.

    A single message is indexed strictly (provider errors are returned);
    several are indexed best effort.

    Args:
        request: IndexMessagesRequest with messages
        rag_service: Injected RAGService

    Returns:
        IndexingResult: Indexed, skipped and failed counts

    Raises:
        HTTPException(400/502/500): Validation, provider or storage failure
    """
    try:
        if len(request.messages) == 1:
            return await rag_service.index_message(request.messages[0])
        return await rag_service.index_messages(request.messages)
    except RecallException as e:
        raise to_http_exception(e) from e


@router.get("/messages/{message_id}/indexed", response_model=MessageIndexedResponse)
async def is_message_indexed(
    message_id: str,
    rag_service: RAGService = Depends(get_rag_service),
) -> MessageIndexedResponse:
    """Check whether a message has been indexed."""
    try:
        indexed = await rag_service.is_message_indexed(message_id)
    except RecallException as e:
        raise to_http_exception(e) from e
    return MessageIndexedResponse(message_id=message_id, indexed=indexed)


@router.post("/conversations/{conversation_id}", response_model=IndexingResult)
async def index_conversation(
    conversation_id: str,
    request: IndexConversationRequest,
    rag_service: RAGService = Depends(get_rag_service),
) -> IndexingResult:
    """
    Chunk and index a conversation.

    Args:
        conversation_id: Conversation identifier
        request: IndexConversationRequest with ordered messages
        rag_service: Injected RAGService

    Returns:
        IndexingResult: Per-chunk counts

    Raises:
        HTTPException(500): Storage failure
    """
    try:
        return await rag_service.index_conversation(conversation_id, request.messages)
    except RecallException as e:
        raise to_http_exception(e) from e


@router.get(
    "/conversations/{conversation_id}/similar",
    response_model=list[SimilarConversationResponse],
)
async def find_similar_conversations(
    conversation_id: str,
    top_k: int = Query(default=5, ge=1, le=50),
    rag_service: RAGService = Depends(get_rag_service),
) -> list[SimilarConversationResponse]:
    """List conversations most similar to the given one."""
    try:
        pairs = await rag_service.find_similar_conversations(conversation_id, top_k)
    except RecallException as e:
        raise to_http_exception(e) from e
    return [
        SimilarConversationResponse(conversation_id=other_id, similarity=score)
        for other_id, score in pairs
    ]


@router.delete("/conversations/{conversation_id}", response_model=DeleteResponse)
async def delete_conversation_data(
    conversation_id: str,
    rag_service: RAGService = Depends(get_rag_service),
) -> DeleteResponse:
    """Delete the indexed chunks of a conversation."""
    try:
        deleted = await rag_service.delete_conversation_data(conversation_id)
    except RecallException as e:
        raise to_http_exception(e) from e
    return DeleteResponse(deleted=deleted)


@router.post("/context", response_model=ContextResponse)
async def build_context(
    request: ContextRequest,
    rag_service: RAGService = Depends(get_rag_service),
) -> ContextResponse:
    """
    Build token-budgeted prompt context.

    Args:
        request: ContextRequest selecting the context variant
        rag_service: Injected RAGService

    Returns:
        ContextResponse: Context string (may be empty)

    Raises:
        HTTPException(400): Query not embeddable
        HTTPException(503): Embedding provider not configured
        HTTPException(502): Query embedding failed
        HTTPException(500): Storage failure
    """
    try:
        if request.mode == "conversation":
            context = await rag_service.build_conversation_context(
                request.conversation_id, request.query
            )
        elif request.mode == "code":
            context = await rag_service.build_code_context(request.query, request.language)
        elif request.mode == "multi_turn":
            context = await rag_service.build_multi_turn_context(request.turns, request.library_id)
        else:
            context = await rag_service.build_context_for_query(
                request.query, request.library_id, request.top_k
            )
    except RecallException as e:
        raise to_http_exception(e) from e
    return ContextResponse(context=context, has_context=bool(context))


@router.get("/search", response_model=list[SearchResultResponse])
async def search_messages(
    query: str = Query(min_length=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    rag_service: RAGService = Depends(get_rag_service),
) -> list[SearchResultResponse]:
    """
    Hybrid search over indexed messages.

    Args:
        query: Search query
        limit: Maximum number of results (server default if omitted)
        rag_service: Injected RAGService

    Returns:
        list[SearchResultResponse]: Best match first
    """
    try:
        results = await rag_service.search_messages(query, limit)
    except RecallException as e:
        raise to_http_exception(e) from e
    return [SearchResultResponse.from_ranked(result) for result in results]


@router.get("/statistics", response_model=RAGStatistics)
async def get_statistics(rag_service: RAGService = Depends(get_rag_service)) -> RAGStatistics:
    """Counts of indexed documents and of skipped/failed items."""
    try:
        return await rag_service.get_statistics()
    except RecallException as e:
        raise to_http_exception(e) from e


@router.delete("", response_model=DeleteResponse)
async def clear_all_data(rag_service: RAGService = Depends(get_rag_service)) -> DeleteResponse:
    """Delete all indexed documents and embeddings."""
    try:
        deleted = await rag_service.clear_all_data()
    except RecallException as e:
        raise to_http_exception(e) from e
    logger.info(f"{__name__}:clear_all_data - deleted={deleted}")
    return DeleteResponse(deleted=deleted)
