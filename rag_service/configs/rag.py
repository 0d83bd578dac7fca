"""
Retrieval pipeline configuration settings.

Chunking, hybrid search and chat/context defaults.

Dependencies: pydantic, pydantic_settings
System role: Tuning knobs for the RAG pipeline
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from rag_service.configs.base import BaseSettings


class ChunkingSettings(BaseSettings):
    """Document chunking configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHUNK_",
        case_sensitive=False,
        extra="ignore",
    )

    size: int = Field(default=1000, gt=0, description="Target chunk size in characters")
    overlap: int = Field(default=200, ge=0, description="Overlap between consecutive chunks")
    min_size: int = Field(default=100, ge=0, description="Minimum chunk size before splitting")
    background_threshold: int = Field(
        default=200_000,
        description="Texts longer than this are chunked in a worker thread",
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "ChunkingSettings":
        if self.overlap >= self.size:
            raise ValueError("CHUNK_OVERLAP must be smaller than CHUNK_SIZE")
        if self.min_size > self.size:
            raise ValueError("CHUNK_MIN_SIZE must not exceed CHUNK_SIZE")
        return self


class SearchSettings(BaseSettings):
    """Hybrid search defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SEARCH_",
        case_sensitive=False,
        extra="ignore",
    )

    default_limit: int = Field(default=5, description="Results returned when limit is omitted")
    max_limit: int = Field(default=50, description="Upper bound on requested limit")
    max_query_length: int = Field(default=500, description="Maximum query length in characters")
    semantic_weight: float = Field(default=0.7, description="Default semantic weight")
    keyword_weight: float = Field(default=0.3, description="Default keyword weight")
    min_score: float = Field(default=0.5, description="Default fused score floor")
    oversample_factor: int = Field(
        default=2,
        ge=1,
        description="Candidates fetched per source as a multiple of limit",
    )
    vector_score_threshold: float = Field(
        default=0.0,
        description="Cosine similarity floor applied by the vector service",
    )
    keyword_score_threshold: float = Field(
        default=0.0,
        description="Relevance floor applied to keyword matches",
    )


class ChatSettings(BaseSettings):
    """Context assembly and conversation history configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RAG_",
        case_sensitive=False,
        extra="ignore",
    )

    max_context_chunks: int = Field(default=5, description="Maximum context blocks per prompt")
    max_context_length: int = Field(default=4000, description="Context character budget")
    relevance_threshold: float = Field(
        default=0.5,
        description="Fused score floor for chunks used as chat context",
    )
    history_turns: int = Field(default=10, description="Prior turns included in the prompt")
    max_history: int = Field(default=50, description="Turns retained per session")
    session_ttl: int = Field(default=24 * 3600, description="Session expiry (seconds)")
    heartbeat_interval: float = Field(default=15.0, description="SSE heartbeat interval (seconds)")
