"""
Test suite for RAG API endpoints.

Uses FastAPI TestClient with the RAG service dependency overridden by an
AsyncMock, covering request validation, response shapes and the mapping
of domain exceptions to HTTP status codes.

System role: Verification of the retrieval HTTP API
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from recall.api.deps import get_rag_service
from recall.api.main import create_app
from recall.core.exceptions import (
    ConfigurationError,
    StorageError,
    TransientProviderError,
    ValidationError,
)
from recall.models.document import RAGDocument, RankedResult, SourceType
from recall.models.indexing import IndexingResult, RAGStatistics


def _message(text: str = "rotate the cube please") -> dict:
    return {"content": {"kind": "text", "text": text}, "is_user": True}


@pytest.fixture
def mock_rag_service() -> AsyncMock:
    """RAG service mock with plain-value defaults."""
    service = AsyncMock()
    service.index_message.return_value = IndexingResult(indexed=1)
    service.index_messages.return_value = IndexingResult(indexed=2, skipped=1)
    service.index_conversation.return_value = IndexingResult(indexed=3)
    service.build_context_for_query.return_value = "# Relevant Context\n\nblock"
    service.build_conversation_context.return_value = ""
    service.build_code_context.return_value = "code"
    service.build_multi_turn_context.return_value = "multi"
    service.search_messages.return_value = []
    service.find_similar_conversations.return_value = []
    service.delete_conversation_data.return_value = 2
    service.clear_all_data.return_value = 9
    service.is_message_indexed.return_value = True
    return service


@pytest.fixture
def client(mock_rag_service) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_rag_service] = lambda: mock_rag_service
    return TestClient(app)


class TestIndexEndpoints:
    """Test suite for POST /rag/messages and POST /rag/conversations/{id}."""

    def test_single_message_should_use_strict_indexing(self, client, mock_rag_service) -> None:
        response = client.post("/api/v1/rag/messages", json={"messages": [_message()]})

        assert response.status_code == 200
        assert response.json() == {"indexed": 1, "skipped": 0, "failed": 0}
        mock_rag_service.index_message.assert_awaited_once()
        mock_rag_service.index_messages.assert_not_called()

    def test_several_messages_should_use_best_effort_batch(self, client, mock_rag_service) -> None:
        response = client.post(
            "/api/v1/rag/messages", json={"messages": [_message(), _message("add a sphere please")]}
        )

        assert response.status_code == 200
        assert response.json()["skipped"] == 1
        sent = mock_rag_service.index_messages.call_args.args[0]
        assert [m.content.text for m in sent] == ["rotate the cube please", "add a sphere please"]

    def test_attachment_content_should_parse_as_tagged_variant(self, client, mock_rag_service) -> None:
        message = {
            "content": {
                "kind": "attachments",
                "text": "see image",
                "attachments": [{"mime_type": "image/png"}],
            },
            "is_user": True,
        }

        response = client.post("/api/v1/rag/messages", json={"messages": [message]})

        assert response.status_code == 200
        sent = mock_rag_service.index_message.call_args.args[0]
        assert sent.content.kind == "attachments"

    def test_empty_message_list_should_be_rejected(self, client) -> None:
        response = client.post("/api/v1/rag/messages", json={"messages": []})

        assert response.status_code == 422

    def test_index_conversation(self, client, mock_rag_service) -> None:
        response = client.post(
            "/api/v1/rag/conversations/conv-1", json={"messages": [_message(), _message()]}
        )

        assert response.status_code == 200
        assert response.json()["indexed"] == 3
        assert mock_rag_service.index_conversation.call_args.args[0] == "conv-1"


class TestContextEndpoint:
    """Test suite for POST /rag/context."""

    def test_general_mode_should_build_query_context(self, client, mock_rag_service) -> None:
        response = client.post(
            "/api/v1/rag/context", json={"query": "how to rotate", "library_id": "babylon", "top_k": 5}
        )

        assert response.status_code == 200
        assert response.json() == {"context": "# Relevant Context\n\nblock", "has_context": True}
        mock_rag_service.build_context_for_query.assert_awaited_once_with("how to rotate", "babylon", 5)

    def test_omitted_top_k_should_defer_to_service_default(self, client, mock_rag_service) -> None:
        client.post("/api/v1/rag/context", json={"query": "how to rotate"})

        mock_rag_service.build_context_for_query.assert_awaited_once_with("how to rotate", None, None)

    def test_empty_context_should_be_normal_result(self, client) -> None:
        response = client.post(
            "/api/v1/rag/context",
            json={"query": "anything", "mode": "conversation", "conversation_id": "c-1"},
        )

        assert response.status_code == 200
        assert response.json() == {"context": "", "has_context": False}

    def test_code_mode_should_pass_language(self, client, mock_rag_service) -> None:
        client.post("/api/v1/rag/context", json={"query": "spin", "mode": "code", "language": "js"})

        mock_rag_service.build_code_context.assert_awaited_once_with("spin", "js")

    def test_multi_turn_mode_should_pass_turns(self, client, mock_rag_service) -> None:
        client.post("/api/v1/rag/context", json={"mode": "multi_turn", "turns": ["a", "b"]})

        mock_rag_service.build_multi_turn_context.assert_awaited_once_with(["a", "b"], None)

    @pytest.mark.parametrize(
        "body",
        [
            {"query": "x", "mode": "conversation"},
            {"mode": "multi_turn"},
            {"query": "   "},
        ],
    )
    def test_incomplete_request_should_be_rejected(self, client, body) -> None:
        assert client.post("/api/v1/rag/context", json=body).status_code == 422


class TestErrorMapping:
    """Test suite for domain exception to status code mapping."""

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (ValidationError("query too short", field="text"), 400),
            (ConfigurationError("no key", setting="EMBEDDING_API_KEY"), 503),
            (TransientProviderError("upstream down", status_code=500), 502),
            (StorageError("database locked", operation="search"), 500),
        ],
    )
    def test_context_errors_should_map_to_status(
        self, client, mock_rag_service, error, status_code
    ) -> None:
        mock_rag_service.build_context_for_query.side_effect = error

        response = client.post("/api/v1/rag/context", json={"query": "some query"})

        assert response.status_code == status_code
        assert response.json()["detail"] == error.message

    def test_storage_error_on_indexing_should_return_500(self, client, mock_rag_service) -> None:
        mock_rag_service.index_message.side_effect = StorageError("disk full", operation="insert")

        response = client.post("/api/v1/rag/messages", json={"messages": [_message()]})

        assert response.status_code == 500


class TestReadAndDeleteEndpoints:
    """Test suite for search, statistics, lookup and deletion."""

    def test_search_should_return_ranked_hits(self, client, mock_rag_service) -> None:
        # Arrange
        document = RAGDocument(
            id="doc-1",
            source_type=SourceType.MESSAGE,
            source_id="msg-1",
            chunk_text="rotate the cube",
            metadata={"is_user": "true"},
        )
        mock_rag_service.search_messages.return_value = [
            RankedResult(document=document, relevance_score=0.8)
        ]

        # Act
        response = client.get("/api/v1/rag/search", params={"query": "rotate", "limit": 3})

        # Assert
        assert response.status_code == 200
        assert response.json() == [
            {
                "document_id": "doc-1",
                "source_type": "message",
                "source_id": "msg-1",
                "chunk_text": "rotate the cube",
                "relevance_score": 0.8,
                "metadata": {"is_user": "true"},
            }
        ]
        mock_rag_service.search_messages.assert_awaited_once_with("rotate", 3)

    def test_search_without_limit_should_defer_to_service_default(
        self, client, mock_rag_service
    ) -> None:
        client.get("/api/v1/rag/search", params={"query": "rotate"})

        mock_rag_service.search_messages.assert_awaited_once_with("rotate", None)

    def test_search_without_query_should_be_rejected(self, client) -> None:
        assert client.get("/api/v1/rag/search").status_code == 422

    def test_statistics(self, client, mock_rag_service) -> None:
        mock_rag_service.get_statistics.return_value = RAGStatistics(
            total_documents=5,
            total_embeddings=5,
            message_documents=3,
            conversation_documents=2,
            skipped_chunks=4,
        )

        response = client.get("/api/v1/rag/statistics")

        assert response.status_code == 200
        assert response.json()["skipped_chunks"] == 4
        assert response.json()["failed_chunks"] == 0

    def test_similar_conversations(self, client, mock_rag_service) -> None:
        mock_rag_service.find_similar_conversations.return_value = [("conv-2", 0.93)]

        response = client.get("/api/v1/rag/conversations/conv-1/similar", params={"top_k": 2})

        assert response.json() == [{"conversation_id": "conv-2", "similarity": 0.93}]
        mock_rag_service.find_similar_conversations.assert_awaited_once_with("conv-1", 2)

    def test_message_indexed(self, client) -> None:
        response = client.get("/api/v1/rag/messages/m-1/indexed")

        assert response.json() == {"message_id": "m-1", "indexed": True}

    def test_delete_conversation(self, client, mock_rag_service) -> None:
        response = client.delete("/api/v1/rag/conversations/conv-1")

        assert response.json() == {"deleted": 2}
        mock_rag_service.delete_conversation_data.assert_awaited_once_with("conv-1")

    def test_clear_all(self, client) -> None:
        response = client.delete("/api/v1/rag")

        assert response.status_code == 200
        assert response.json() == {"deleted": 9}
