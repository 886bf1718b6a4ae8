"""
Embedding provider client.

Wraps an OpenAI-compatible embeddings endpoint (Together AI by default)
with credential checks, input gating, batching with a fixed inter-batch
delay, and restoration of input order from the provider's index tags.
Every call is a live round-trip; results are never cached.

Dependencies: httpx, pydantic, recall.configs, recall.core
System role: Embedding generation adapter
"""

import asyncio
import logging
from collections.abc import Sequence

import httpx
from pydantic import ValidationError as SchemaError

from recall.configs.embedding import PLACEHOLDER_API_KEY, EmbeddingSettings
from recall.boundary.embedding.embedding_schemas import EmbeddingRequest, EmbeddingResponse
from recall.core.embeddability import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MIN_CHARS,
    is_embeddable,
    truncate_to_limit,
)
from recall.core.exceptions import ConfigurationError, TransientProviderError, ValidationError
from recall.observability.observer import NullObserver, PipelineEvent, PipelineObserver

DEFAULT_MODEL = "togethercomputer/m2-bert-80M-8k-retrieval"
DEFAULT_DIMENSION = 768
DEFAULT_BATCH_SIZE = 20
DEFAULT_BATCH_DELAY_SECONDS = 0.1


class EmbeddingClient:
    """
    Order-preserving client for an external embedding provider.

    Refuses to touch the network without a credential, rejects text that
    fails the embeddability gate, and always returns vectors in the order
    the texts were given.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        dimension: int = DEFAULT_DIMENSION,
        base_url: str = "https://api.together.xyz/v1",
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        min_chars: int = DEFAULT_MIN_CHARS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        observer: PipelineObserver | None = None,
    ) -> None:
        """
        Initialize embedding client.

        Args:
            api_key: Provider credential (None or placeholder means unconfigured)
            model: Embedding model identifier
            dimension: Expected vector dimension
            base_url: Base URL of the embeddings API
            batch_size: Default texts per request in chunked batching
            batch_delay_seconds: Pause between sequential batch requests
            min_chars: Minimum stripped length accepted by embed()
            max_tokens: Model input limit; longer texts are truncated before sending
            timeout_seconds: HTTP timeout for owned clients
            http_client: Optional pre-built client (caller keeps ownership)
            observer: Sink for pipeline events

        Raises:
            ValueError: When batch_size, dimension or max_tokens is not positive
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")

        self._api_key = api_key
        self.model = model
        self.dimension = dimension
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.min_chars = min_chars
        self.max_tokens = max_tokens
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None
        self._observer = observer or NullObserver()

    def is_available(self) -> bool:
        """Whether a usable provider credential is configured."""
        key = self._api_key
        return bool(key and key.strip()) and key != PLACEHOLDER_API_KEY

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Text over the model limit is cut to max_tokens * 4 characters
        before it is sent.

        Args:
            text: Text to embed

        Returns:
            list[float]: Embedding vector

        Raises:
            ConfigurationError: No credential configured
            ValidationError: Text is blank or shorter than min_chars
            TransientProviderError: Network or response failure
        """
        self._require_credential()
        if not is_embeddable(text, self.min_chars):
            raise ValidationError(
                f"Text is not embeddable (blank or under {self.min_chars} chars)",
                field="text",
                details={"length": len(text)},
            )
        vectors = await self._request([truncate_to_limit(text, self.max_tokens)])
        return vectors[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed several texts in one request, each cut to the model limit.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per text, in input order

        Raises:
            ConfigurationError: No credential configured
            ValidationError: A text is blank
            TransientProviderError: Network or response failure
        """
        if not texts:
            return []
        self._require_credential()
        for position, text in enumerate(texts):
            if not text.strip():
                raise ValidationError(
                    "Cannot embed blank text",
                    field="texts",
                    details={"position": position},
                )
        return await self._request([truncate_to_limit(text, self.max_tokens) for text in texts])

    async def embed_batch_chunked(
        self,
        texts: Sequence[str],
        batch_size: int | None = None,
    ) -> list[list[float]]:
        """
        Embed many texts in sequential, throttled batches.

        A failing batch aborts the remaining batches of this call.

        Args:
            texts: Texts to embed
            batch_size: Texts per request (defaults to the client setting)

        Returns:
            list[list[float]]: One vector per text, in input order
        """
        if not texts:
            return []

        size = self.batch_size if batch_size is None else batch_size
        if size <= 0:
            raise ValueError("batch_size must be positive")

        total_batches = (len(texts) + size - 1) // size
        vectors: list[list[float]] = []

        for start in range(0, len(texts), size):
            batch_number = start // size + 1
            self._emit(
                "batch_started",
                f"Embedding batch {batch_number}/{total_batches}",
                level=logging.DEBUG,
                batch=batch_number,
                size=min(size, len(texts) - start),
            )
            vectors.extend(await self.embed_batch(texts[start:start + size]))

            if start + size < len(texts):
                await asyncio.sleep(self.batch_delay_seconds)

        self._emit(
            "batch_completed",
            f"Generated {len(vectors)} embeddings in {total_batches} batches",
            count=len(vectors),
        )
        return vectors

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def _require_credential(self) -> None:
        if not self.is_available():
            raise ConfigurationError(
                "Embedding provider API key not configured",
                setting="EMBEDDING_API_KEY",
            )

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def _request(self, texts: list[str]) -> list[list[float]]:
        """Send one request and return vectors sorted back into input order."""
        payload = EmbeddingRequest(model=self.model, input=texts)

        try:
            response = await self._client().post(
                f"{self._base_url}/embeddings",
                json=payload.model_dump(),
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransientProviderError(
                "Embedding provider returned an error status",
                status_code=e.response.status_code,
                details={"body": e.response.text[:200]},
            ) from e
        except httpx.HTTPError as e:
            raise TransientProviderError(
                f"Embedding request failed: {type(e).__name__}: {e}"
            ) from e

        try:
            parsed = EmbeddingResponse.model_validate(response.json())
        except (ValueError, SchemaError) as e:
            raise TransientProviderError(f"Malformed embedding response: {e}") from e

        items = sorted(parsed.data, key=lambda item: item.index)
        if [item.index for item in items] != list(range(len(texts))):
            raise TransientProviderError(
                "Embedding response does not cover every input exactly once",
                details={"expected": len(texts), "received": len(items)},
            )

        for item in items:
            if len(item.embedding) != self.dimension:
                raise ValidationError(
                    "Embedding dimension mismatch",
                    field="dimension",
                    details={"expected": self.dimension, "received": len(item.embedding)},
                )

        self._emit(
            "embedded",
            f"Generated {len(items)} {self.dimension}-dimensional embeddings",
            level=logging.DEBUG,
            count=len(items),
            model=self.model,
        )
        return [item.embedding for item in items]

    def _emit(self, name: str, message: str, level: int = logging.INFO, **fields) -> None:
        self._observer.emit(
            PipelineEvent(stage="embedding", name=name, message=message, level=level, fields=fields)
        )


def create_embedding_client(
    settings: EmbeddingSettings,
    observer: PipelineObserver | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> EmbeddingClient:
    """
    Build an EmbeddingClient from settings.

    Args:
        settings: Embedding provider settings
        observer: Sink for pipeline events
        http_client: Optional pre-built HTTP client

    Returns:
        EmbeddingClient: Configured client
    """
    return EmbeddingClient(
        api_key=settings.api_key,
        model=settings.model,
        dimension=settings.dimension,
        base_url=settings.base_url,
        batch_size=settings.batch_size,
        batch_delay_seconds=settings.batch_delay_ms / 1000,
        min_chars=settings.min_chars,
        max_tokens=settings.max_tokens,
        timeout_seconds=settings.timeout_seconds,
        http_client=http_client,
        observer=observer,
    )
