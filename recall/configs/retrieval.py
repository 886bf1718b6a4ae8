"""
Retrieval configuration settings.

Score fusion weights, candidate limits, chunking and context budgets.

Dependencies: pydantic, pydantic_settings
System role: Search and context assembly tuning
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from recall.configs.base import BaseSettings


class RetrievalSettings(BaseSettings):
    """Hybrid search and context assembly configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    semantic_weight: float = Field(default=0.6, ge=0.0, description="Weight of cosine score")
    keyword_weight: float = Field(default=0.4, ge=0.0, description="Weight of keyword rank score")
    keyword_candidate_limit: int = Field(
        default=50,
        ge=1,
        description="Full-text candidates considered before semantic reranking",
    )

    default_top_k: int = Field(default=10, ge=1, description="Default number of results")
    max_context_tokens: int = Field(
        default=3000,
        ge=1,
        description="Budget for assembled context; leaves room for query and reply",
    )
    chunk_max_chars: int = Field(
        default=6000,
        ge=1,
        description="Character budget for one conversation chunk",
    )
    multi_turn_max_conversations: int = Field(
        default=8,
        ge=1,
        description="Distinct conversations kept in multi-turn context",
    )

    @model_validator(mode="after")
    def _check_weights(self) -> "RetrievalSettings":
        if self.semantic_weight + self.keyword_weight == 0:
            raise ValueError("semantic_weight and keyword_weight cannot both be zero")
        return self
