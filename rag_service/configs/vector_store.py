"""
Vector store configuration settings.

Manages Qdrant connection and collection layout. One collection is
created per knowledge base, named from the prefix and the knowledge base id.

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration for RAG retrieval
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from rag_service.configs.base import BaseSettings


class VectorStoreSettings(BaseSettings):
    """Qdrant vector store configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QDRANT_",
        case_sensitive=False,
        extra="ignore",
    )

    url: str | None = Field(default=None, description="Qdrant URL, e.g. http://localhost:6333")
    host: str = Field(default="localhost", description="Qdrant host when url is not set")
    port: int = Field(default=6333, description="Qdrant REST port")
    api_key: str | None = Field(default=None, description="Qdrant API key")
    location: str | None = Field(
        default=None,
        description="Local mode location (':memory:' for an in-process store)",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")

    collection_prefix: str = Field(default="kb_", description="Collection name prefix")
    dimension: int = Field(default=1536, description="Embedding vector dimension")
    distance: str = Field(default="Cosine", description="Distance metric (Cosine, Dot, Euclid)")
