"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from rag_service.configs.base import BaseSettings
from rag_service.configs.cache import CacheSettings
from rag_service.configs.database import DatabaseSettings
from rag_service.configs.providers import ChatModelSettings, EmbeddingSettings, ProviderSettings
from rag_service.configs.rag import ChatSettings, ChunkingSettings, SearchSettings
from rag_service.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    chat_model: ChatModelSettings = Field(default_factory=ChatModelSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Environment variables are loaded once at first access.

    Returns:
        Settings: Application settings instance

    Usage:
        from rag_service.configs import get_settings
        settings = get_settings()
    """
    return Settings()
