"""
Cache configuration settings.

Redis connection plus the time-to-live used for each cached artifact.

Dependencies: pydantic, pydantic_settings
System role: Result cache and conversation store configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from rag_service.configs.base import BaseSettings


class CacheSettings(BaseSettings):
    """Redis cache configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="REDIS_",
        case_sensitive=False,
        extra="ignore",
    )

    url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    key_prefix: str = Field(default="", description="Prefix prepended to every key")
    enabled: bool = Field(default=True, description="Enable result caching")

    embedding_ttl: int = Field(default=7 * 24 * 3600, description="Embedding cache TTL (seconds)")
    search_ttl: int = Field(default=600, description="Search result cache TTL (seconds)")
    llm_ttl: int = Field(default=3600, description="LLM completion cache TTL (seconds)")
