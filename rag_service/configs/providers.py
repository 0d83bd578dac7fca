"""
Model provider configuration settings.

Covers the HTTP provider (OpenAI or OpenRouter), the embedding model
and the chat completion model.

Dependencies: pydantic, pydantic_settings
System role: External model provider configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from rag_service.configs.base import BaseSettings


class ProviderSettings(BaseSettings):
    """Language-model provider connection settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LLM_PROVIDER_",
        case_sensitive=False,
        extra="ignore",
    )

    name: str = Field(default="openai", description="Provider: 'openai' or 'openrouter'")
    base_url: str | None = Field(
        default=None,
        description="Override API base URL (defaults to the provider's public endpoint)",
    )
    api_key: str = Field(default="", description="Provider API key")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    referer: str = Field(
        default="http://localhost:8000",
        description="HTTP-Referer header sent to OpenRouter",
    )
    title: str = Field(default="RAG Service", description="X-Title header sent to OpenRouter")


class EmbeddingSettings(BaseSettings):
    """Embedding model and batching configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(default="text-embedding-3-small", description="Embedding model ID")
    dimensions: int = Field(default=1536, description="Embedding vector dimension")
    max_tokens: int = Field(default=8191, description="Model input token limit")
    batch_size: int = Field(default=100, description="Texts per provider request")
    batch_delay: float = Field(default=0.1, description="Pause between sub-batches (seconds)")
    max_retries: int = Field(default=3, description="Attempts for transient failures")
    retry_delay: float = Field(default=1.0, description="Initial backoff (seconds)")


class ChatModelSettings(BaseSettings):
    """Chat completion model configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHAT_",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(default="gpt-4o-mini", description="Chat completion model ID")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_tokens: int = Field(default=1000, description="Maximum completion tokens")
    max_attempts: int = Field(default=3, description="Attempts for retryable failures")
    retry_delay: float = Field(default=1.0, description="Initial backoff (seconds)")
    cache_completions: bool = Field(
        default=True,
        description="Cache synchronous completions by request hash",
    )
