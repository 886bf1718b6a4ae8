"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite engine with the FTS5 schema, RAG store,
deterministic stub embedding client, recording observer
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import re
import zlib

import pytest
from sqlalchemy.pool import StaticPool

from recall.core.embeddability import is_embeddable
from recall.core.exceptions import ConfigurationError, TransientProviderError, ValidationError
from recall.observability.observer import RecordingObserver

TEST_DIMENSION = 8


class StubEmbeddingClient:
    """
    Deterministic stand-in for EmbeddingClient.

    Texts listed in ``vectors`` get that exact vector; any other text gets
    a bag-of-words vector (each word hashed into one component), so texts
    sharing words are similar.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        dimension: int = TEST_DIMENSION,
        available: bool = True,
        min_chars: int = 10,
        failing_words: tuple[str, ...] = (),
        fail_batches: bool = False,
    ) -> None:
        self.vectors = dict(vectors or {})
        self.dimension = dimension
        self.available = available
        self.min_chars = min_chars
        self.failing_words = failing_words
        self.fail_batches = fail_batches
        self.model = "stub-embedding-model"
        self.embedded_texts: list[str] = []
        self.batch_calls: list[list[str]] = []
        self.closed = False

    def is_available(self) -> bool:
        return self.available

    def vector_for(self, text: str) -> list[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        vector = [0.0] * self.dimension
        for word in re.findall(r"\w+", text.lower()):
            vector[zlib.crc32(word.encode()) % self.dimension] += 1.0
        return vector

    async def embed(self, text: str) -> list[float]:
        if not self.available:
            raise ConfigurationError("not configured", setting="EMBEDDING_API_KEY")
        if not is_embeddable(text, self.min_chars):
            raise ValidationError("not embeddable", field="text")
        if any(word in text for word in self.failing_words):
            raise TransientProviderError("stub provider failure", status_code=500)
        self.embedded_texts.append(text)
        return self.vector_for(text)

    async def embed_batch_chunked(self, texts, batch_size=None) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        if self.fail_batches:
            raise TransientProviderError("stub batch failure", status_code=503)
        self.embedded_texts.extend(texts)
        return [self.vector_for(text) for text in texts]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
async def async_engine():
    """
    Create in-memory SQLite async engine with the full schema.

    Yields:
        AsyncEngine: Engine sharing one connection (StaticPool)
    """
    from recall.boundary.db.connection import create_schema, drop_schema, get_async_engine

    engine = get_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)

    yield engine

    await drop_schema(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    """Session factory bound to the in-memory engine."""
    from recall.boundary.db.connection import get_async_session_factory

    return get_async_session_factory(async_engine)


@pytest.fixture
def recorder() -> RecordingObserver:
    """Observer that keeps every emitted event."""
    return RecordingObserver()


@pytest.fixture
def rag_store(session_factory, recorder):
    """RAGStore over the in-memory database."""
    from recall.boundary.db.rag_store import RAGStore

    return RAGStore(session_factory, dimension=TEST_DIMENSION, observer=recorder)


@pytest.fixture
def stub_embedder() -> StubEmbeddingClient:
    """Available stub embedding client with bag-of-words vectors."""
    return StubEmbeddingClient()


@pytest.fixture
def embedder_factory():
    """Build stub embedding clients with custom vectors or failure modes."""
    return StubEmbeddingClient
