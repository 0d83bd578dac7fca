"""
Search schemas.

Defines the ranked result type shared by the vector index, keyword index
and hybrid retriever, the per-call search options, and the search API
request/response models.

Dependencies: pydantic
System role: Retrieval data contracts
"""

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SearchMode(str, Enum):
    """Retrieval strategy."""

    HYBRID = "hybrid"
    SEMANTIC = "semantic"
    KEYWORD = "keyword"


class SearchResult(BaseModel):
    """
    One ranked chunk.

    Attributes:
        document_id: Source document
        chunk_id: Chunk identifier within the document (chunk_{index})
        content: Chunk text
        score: Relevance on a 0-1 scale, higher is better
        semantic_score: Vector similarity contribution (hybrid only)
        keyword_score: Text relevance contribution (hybrid only)
        metadata: Payload fields such as filename and chunk_index
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    chunk_id: str
    content: str
    score: float = Field(ge=0.0, le=1.0)
    semantic_score: float | None = None
    keyword_score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.document_id, self.chunk_id)

    @property
    def filename(self) -> str:
        return self.metadata.get("filename") or "unknown"


class SearchOptions(BaseModel):
    """Options for a single retrieval call."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=5, ge=1, le=50)
    semantic_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    keyword_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    min_score: float = Field(default=0.5, ge=0.0, le=1.0)
    document_ids: list[str] | None = None

    def cache_params(self) -> str:
        """Stable string form of the options for cache keys."""
        docs = ",".join(sorted(self.document_ids)) if self.document_ids else "*"
        return (
            f"{self.limit}:{self.semantic_weight:g}:{self.keyword_weight:g}"
            f":{self.min_score:g}:{docs}"
        )


class SearchRequest(BaseModel):
    """Request body for the search endpoint."""

    query: str = Field(..., min_length=1, max_length=500)
    mode: SearchMode = SearchMode.HYBRID
    limit: int | None = Field(default=None, ge=1, le=50)
    semantic_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    keyword_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    min_score: float | None = Field(default=None, ge=0.0, le=1.0)
    document_ids: list[UUID] | None = None


class SearchResponse(BaseModel):
    """Search endpoint response."""

    knowledge_base_id: UUID
    query: str
    mode: SearchMode
    results: list[SearchResult]
    total: int
    cached: bool = False
