"""
Database configuration settings.

Manages the SQLite connection used for RAG documents, embeddings and the
full-text index.

Dependencies: pydantic, pydantic_settings
System role: Database connection configuration for ORM
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from recall.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """SQLite database configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DATABASE_",
        case_sensitive=False,
        extra="ignore",
    )

    path: str = Field(default="./recall.db", description="SQLite database file path")
    echo_sql: bool = Field(default=False, description="Log emitted SQL statements")
    url_override: str | None = Field(
        default=None,
        description="Full async SQLAlchemy URL; takes precedence over path",
    )

    @property
    def async_database_url(self) -> str:
        """
        Construct async SQLAlchemy database URL.

        Returns:
            str: aiosqlite connection URL
        """
        if self.url_override:
            return self.url_override
        return f"sqlite+aiosqlite:///{self.path}"
