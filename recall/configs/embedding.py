"""
Embedding provider configuration settings.

Credentials, model identity and throttling for the external embedding API.
Switching providers changes the model and the vector dimension together,
so both live here rather than in code.

Dependencies: pydantic, pydantic_settings
System role: Embedding client configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from recall.configs.base import BaseSettings

PLACEHOLDER_API_KEY = "changeMe"


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration (OpenAI-compatible endpoint)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(default=None, description="Provider API key")
    base_url: str = Field(
        default="https://api.together.xyz/v1",
        description="Base URL of the OpenAI-compatible embeddings API",
    )
    model: str = Field(
        default="togethercomputer/m2-bert-80M-8k-retrieval",
        description="Embedding model identifier",
    )
    dimension: int = Field(default=768, ge=1, description="Embedding vector dimension")

    batch_size: int = Field(default=20, ge=1, description="Texts per batch request")
    batch_delay_ms: int = Field(
        default=100,
        ge=0,
        description="Delay between sequential batch requests in milliseconds",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP request timeout")

    max_tokens: int = Field(
        default=8000,
        ge=1,
        description="Model input limit; longer text is truncated before embedding",
    )
    min_chars: int = Field(
        default=10,
        ge=1,
        description="Minimum stripped length for text to be embeddable",
    )

    @property
    def is_configured(self) -> bool:
        """Whether a usable credential is present."""
        return bool(self.api_key and self.api_key.strip()) and self.api_key != PLACEHOLDER_API_KEY
